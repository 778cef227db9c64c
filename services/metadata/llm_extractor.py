# services/metadata/llm_extractor.py
import json
import logging
import os
from typing import Any, Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from services.metadata.errors import CompletionError, ConfigurationError, ParseError
from services.metadata.prompts import build_metadata_prompt
from services.metadata.schema import BibliographicRecord

logger = logging.getLogger(__name__)

DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
DEFAULT_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "30"))


class LLMMetadataExtractor:
    """
    Extracts a bibliographic record from a text excerpt with a single
    chat completion. The reply must be the bare JSON record; it is never repaired.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Any = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_env(cls) -> "LLMMetadataExtractor":
        return cls(api_key=os.getenv("OPENAI_API_KEY"))

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("OPENAI_API_KEY environment variable is not set")
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    async def extract(self, excerpt: str) -> BibliographicRecord:
        """
        Raises:
            ConfigurationError: If no API key is configured.
            CompletionError: If the request fails or the reply is empty.
            ParseError: If the reply is not a valid JSON record.
        """
        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": build_metadata_prompt(excerpt)}],
                temperature=0,
            )
        except Exception as e:
            logger.error(f"Metadata completion request failed: {e}")
            raise CompletionError(f"Completion request failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise CompletionError("Completion returned no content")

        return parse_completion_content(response.choices[0].message.content)


def parse_completion_content(content: str) -> BibliographicRecord:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Completion reply is not valid JSON: {e}. Content: {content[:200]}")
        raise ParseError(f"Failed to parse metadata JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return BibliographicRecord.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Metadata JSON does not match the record shape: {e}") from e
