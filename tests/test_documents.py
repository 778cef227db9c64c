# tests/test_documents.py
import os
from fastapi import HTTPException
from unittest.mock import AsyncMock, MagicMock, patch

from api.main import app
from api.dependencies.metadata import get_metadata_pipeline
from services.metadata.errors import ExtractionError
from services.metadata.schema import BibliographicRecord


def override_pipeline(result=None, error=None):
    pipeline = MagicMock()
    pipeline.run_file = AsyncMock(return_value=result, side_effect=error)
    app.dependency_overrides[get_metadata_pipeline] = lambda: pipeline
    return pipeline


def upload(client, headers, name="paper.pdf", data=b"%PDF-1.4 dummy binaries"):
    return client.post(
        "/api/documents/upload",
        files={"file": (name, data, "application/pdf")},
        headers=headers,
    )


def test_upload_uses_pipeline_record(client, auth_headers):
    pipeline = override_pipeline(BibliographicRecord(
        title="Paper X", authors=["A B"], year=2020, doi="10.1234/abcd.5678", keywords=["k1"],
    ))

    r = upload(client, auth_headers)

    assert r.status_code == 201
    body = r.json()
    assert body["title"] == "Paper X"
    assert body["authors"] == ["A B"]
    assert body["year"] == 2020
    assert body["doi"] == "10.1234/abcd.5678"
    assert body["keywords"] == ["k1"]
    assert body["pdf_url"].endswith("_paper.pdf")
    assert os.path.exists(body["pdf_url"])

    stored_path = pipeline.run_file.call_args.args[0]
    assert stored_path == body["pdf_url"]


def test_upload_falls_back_to_filename_on_pipeline_failure(client, auth_headers):
    override_pipeline(error=ExtractionError("not a pdf"))

    r = upload(client, auth_headers, name="My Draft.pdf")

    assert r.status_code == 201
    body = r.json()
    assert body["title"] == "My Draft.pdf"
    assert body["authors"] is None
    assert body["doi"] is None
    assert body["pdf_url"].endswith("_My Draft.pdf")


def test_upload_with_real_pipeline_and_unparseable_pdf(client, auth_headers):
    # No override: the lifespan-built pipeline fails extraction before any network call
    r = upload(client, auth_headers, name="broken.pdf", data=b"not a pdf")
    assert r.status_code == 201
    assert r.json()["title"] == "broken.pdf"


def test_upload_removes_stored_file_when_insert_fails(client, auth_headers):
    pipeline = override_pipeline(BibliographicRecord(title="Paper X"))

    with patch("api.routers.documents._insert_document",
               side_effect=HTTPException(status_code=500, detail="Failed to create document")):
        r = upload(client, auth_headers, name="orphan.pdf")

    assert r.status_code == 500
    stored_path = pipeline.run_file.call_args.args[0]
    assert stored_path.endswith("_orphan.pdf")
    assert not os.path.exists(stored_path)


def test_upload_persists_long_registry_values(client, auth_headers):
    long_pages = "e" + "1" * 300
    long_title = "T" * 3000
    override_pipeline(BibliographicRecord(title=long_title, pages=long_pages, volume="v" * 200))

    r = upload(client, auth_headers)

    assert r.status_code == 201
    doc = client.get(f"/api/documents/{r.json()['id']}", headers=auth_headers).json()
    assert doc["title"] == long_title
    assert doc["pages"] == long_pages
    assert doc["volume"] == "v" * 200


def test_upload_rejects_non_pdf(client, auth_headers):
    override_pipeline(BibliographicRecord(title="unused"))
    r = upload(client, auth_headers, name="notes.txt", data=b"hello")
    assert r.status_code == 400


def test_upload_requires_file(client, auth_headers):
    r = client.post("/api/documents/upload", headers=auth_headers)
    assert r.status_code == 400


def test_document_crud(client, auth_headers):
    r = client.post("/api/documents", json={"title": "Manual", "year": 2001, "authors": ["X Y"]}, headers=auth_headers)
    assert r.status_code == 201
    doc_id = r.json()["id"]

    listing = client.get("/api/documents", headers=auth_headers)
    assert [d["id"] for d in listing.json()] == [doc_id]

    r = client.put(f"/api/documents/{doc_id}", json={"journal": "J", "title": None}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["journal"] == "J"
    assert r.json()["title"] == "Manual"
    assert r.json()["year"] == 2001

    assert client.get(f"/api/documents/{doc_id}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/documents/{doc_id}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/documents/{doc_id}", headers=auth_headers).status_code == 404


def test_documents_are_scoped_to_owner(client, auth_headers):
    r = client.post("/api/documents", json={"title": "Private"}, headers=auth_headers)
    doc_id = r.json()["id"]

    other = client.post("/api/auth/register", json={"email": "other@example.com", "password": "another-pass"})
    other_headers = {"Authorization": f"Bearer {other.json()['token']}"}

    assert client.get(f"/api/documents/{doc_id}", headers=other_headers).status_code == 404
    assert client.get("/api/documents", headers=other_headers).json() == []
    assert client.delete(f"/api/documents/{doc_id}", headers=other_headers).status_code == 404


def test_oversized_request_is_rejected(client, auth_headers):
    r = client.post(
        "/api/documents",
        content=b"{}",
        headers={**auth_headers, "Content-Type": "application/json", "Content-Length": str(60 * 1024 * 1024)},
    )
    assert r.status_code == 413
