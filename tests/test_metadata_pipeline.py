# tests/test_metadata_pipeline.py
import pytest
from unittest.mock import AsyncMock, MagicMock

from clients.crossref_client import record_from_crossref
from services.metadata.errors import (
    CompletionError,
    ConfigurationError,
    ExtractionError,
    ParseError,
    RegistryLookupError,
)
from services.metadata.pipeline import MetadataPipeline
from services.metadata.schema import BibliographicRecord, missing_fields

DOI = "10.1234/abcd.5678"
EXCERPT = f"Paper X\nA. B.\nhttps://doi.org/{DOI}\nSee also 10.9999/other.1 for details."


def make_pipeline(excerpt=EXCERPT, registry_result=None, registry_error=None,
                  completion_result=None, completion_error=None):
    registry = MagicMock()
    registry.lookup = AsyncMock(return_value=registry_result, side_effect=registry_error)
    completion = MagicMock()
    completion.extract = AsyncMock(return_value=completion_result, side_effect=completion_error)
    text_extractor = AsyncMock(return_value=excerpt)
    pipeline = MetadataPipeline(registry=registry, completion=completion, text_extractor=text_extractor)
    return pipeline, registry, completion


def complete_registry_record(**overrides):
    fields = dict(
        title="Complete", authors=["A B"], year=2021, publication_type="journal-article",
        journal="J", volume="1", issue="2", pages="3-4", publisher="P", doi=DOI,
        url="https://doi.org/x", abstract_text="Abs", keywords=["k"],
    )
    fields.update(overrides)
    return BibliographicRecord(**fields)


@pytest.mark.asyncio
async def test_extraction_error_propagates_without_network_calls():
    pipeline, registry, completion = make_pipeline()
    pipeline.text_extractor = AsyncMock(side_effect=ExtractionError("not a pdf"))

    with pytest.raises(ExtractionError):
        await pipeline.run(b"garbage")

    registry.lookup.assert_not_called()
    completion.extract.assert_not_called()


@pytest.mark.asyncio
async def test_no_doi_uses_completion_only():
    expected = BibliographicRecord(title="Y", authors=["C D"], year=2019, doi="10.5555/guess")
    pipeline, registry, completion = make_pipeline(excerpt="no identifier here", completion_result=expected)

    result = await pipeline.run(b"%PDF")

    assert result == expected
    registry.lookup.assert_not_called()
    completion.extract.assert_awaited_once_with("no identifier here")


@pytest.mark.asyncio
async def test_only_first_doi_is_looked_up():
    pipeline, registry, _ = make_pipeline(registry_result=complete_registry_record())

    await pipeline.run(b"%PDF")

    registry.lookup.assert_awaited_once_with(DOI)


@pytest.mark.asyncio
async def test_complete_registry_record_skips_completion():
    record = complete_registry_record()
    pipeline, _, completion = make_pipeline(registry_result=record)

    result = await pipeline.run(b"%PDF")

    assert result == record
    completion.extract.assert_not_called()


@pytest.mark.asyncio
async def test_gap_fill_scenario():
    registry_record = record_from_crossref(DOI, {
        "title": ["Paper X"],
        "author": [{"given": "A", "family": "B"}],
        "published": {"date-parts": [[2020]]},
    })
    pipeline, _, completion = make_pipeline(
        registry_result=registry_record,
        completion_result=BibliographicRecord(abstract_text="Some abstract"),
    )

    result = await pipeline.run(b"%PDF")

    assert result.title == "Paper X"
    assert result.authors == ["A B"]
    assert result.year == 2020
    assert result.abstract_text == "Some abstract"
    assert result.doi == DOI
    for name in ("journal", "publication_type", "volume", "issue", "pages",
                 "publisher", "url", "keywords"):
        assert getattr(result, name) is None
    completion.extract.assert_awaited_once_with(EXCERPT)


@pytest.mark.asyncio
async def test_registry_values_win_over_completion():
    registry_record = BibliographicRecord(title="Registry Title", year=2020, journal="Registry J", doi=DOI)
    completion_record = BibliographicRecord(
        title="LLM Title", year=1999, journal="LLM J", doi="10.0000/llm-guess",
        volume="7", keywords=["a", "b"],
    )
    pipeline, _, _ = make_pipeline(registry_result=registry_record, completion_result=completion_record)

    result = await pipeline.run(b"%PDF")

    assert result.title == "Registry Title"
    assert result.year == 2020
    assert result.journal == "Registry J"
    assert result.doi == DOI
    assert result.volume == "7"
    assert result.keywords == ["a", "b"]


@pytest.mark.asyncio
async def test_empty_registry_title_is_filled():
    registry_record = BibliographicRecord(title="", doi=DOI)
    pipeline, _, _ = make_pipeline(
        registry_result=registry_record,
        completion_result=BibliographicRecord(title="From LLM"),
    )

    result = await pipeline.run(b"%PDF")

    assert result.title == "From LLM"


@pytest.mark.asyncio
async def test_registry_404_falls_back_to_completion_verbatim():
    completion_record = BibliographicRecord(title="Only LLM", doi="10.7777/llm")
    pipeline, registry, completion = make_pipeline(
        registry_error=RegistryLookupError("CrossRef returned status 404"),
        completion_result=completion_record,
    )

    result = await pipeline.run(b"%PDF")

    assert result == completion_record
    assert result.doi == "10.7777/llm"
    registry.lookup.assert_awaited_once_with(DOI)
    completion.extract.assert_awaited_once_with(EXCERPT)


@pytest.mark.parametrize("error", [
    CompletionError("timeout"),
    ParseError("not json"),
    ConfigurationError("no key"),
])
@pytest.mark.asyncio
async def test_completion_failure_after_registry_hit_returns_gappy_record(error):
    registry_record = BibliographicRecord(title="Paper X", authors=["A B"], doi=DOI)
    pipeline, _, _ = make_pipeline(registry_result=registry_record, completion_error=error)

    result = await pipeline.run(b"%PDF")

    assert result == registry_record


@pytest.mark.asyncio
async def test_completion_failure_is_fatal_without_registry_data():
    pipeline, _, _ = make_pipeline(excerpt="nothing", completion_error=ParseError("bad reply"))

    with pytest.raises(ParseError):
        await pipeline.run(b"%PDF")


@pytest.mark.asyncio
async def test_run_file_missing_path_is_extraction_error(tmp_path):
    pipeline, registry, completion = make_pipeline()

    with pytest.raises(ExtractionError):
        await pipeline.run_file(tmp_path / "missing.pdf")

    registry.lookup.assert_not_called()
    completion.extract.assert_not_called()


def test_missing_fields_title_uses_empty_string_test():
    record = complete_registry_record(title="")
    assert missing_fields(record) == ["title"]

    record = complete_registry_record(abstract_text="")
    assert missing_fields(record) == []


def test_missing_fields_never_reports_doi():
    record = complete_registry_record(doi=None)
    assert "doi" not in missing_fields(record)
