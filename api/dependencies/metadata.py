# api/dependencies/metadata.py
from fastapi import Request

from clients.crossref_client import CrossRefClient
from services.metadata.llm_extractor import LLMMetadataExtractor
from services.metadata.pipeline import MetadataPipeline


def build_metadata_pipeline() -> MetadataPipeline:
    return MetadataPipeline(
        registry=CrossRefClient(),
        completion=LLMMetadataExtractor.from_env(),
    )


def get_metadata_pipeline(request: Request) -> MetadataPipeline:
    pipeline = getattr(request.app.state, "metadata_pipeline", None)
    if pipeline is None:
        pipeline = build_metadata_pipeline()
        request.app.state.metadata_pipeline = pipeline
    return pipeline
