"""
LLM-driven grant extraction.

Turns raw page text into zero or more ExtractedGrant records. Parse
misses and "no grant" answers are ordinary outcomes and yield an
empty list; only a failed model call raises.
"""

import asyncio
import json
import re
from typing import Any, Optional, Protocol

import structlog
from pydantic import ValidationError

from grantpilot_scraper.config.settings import ScraperSettings
from grantpilot_scraper.core.errors import ExtractionError, ExtractionParseError

from .prompts import SYSTEM_PROMPT, build_user_prompt
from .schema import ExtractedGrant

logger = structlog.get_logger(__name__)

CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class CompletionClient(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = ...,
        max_tokens: int = ...,
    ) -> str:
        ...


def strip_code_fence(text: str) -> str:
    """Remove a markdown code fence wrapper if present."""
    stripped = text.strip()
    match = CODE_FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def parse_response(text: Optional[str]) -> list[Any]:
    """
    Decode the model response into a list of raw items.

    Raises:
        ExtractionParseError: Not JSON, or an explicit error object
    """
    if not text or not text.strip():
        raise ExtractionParseError("Empty model response")

    try:
        data = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise ExtractionParseError(f"Invalid JSON: {e}") from e

    if isinstance(data, dict):
        if "error" in data and "title" not in data:
            raise ExtractionParseError(f"Model reported no data: {data['error']}")
        return [data]

    if isinstance(data, list):
        return data

    raise ExtractionParseError(f"Unexpected JSON type: {type(data).__name__}")


class GrantExtractor:
    """
    Extracts structured grants from page text with a language model.

    Usage:
        extractor = GrantExtractor(LLMClient(), settings)
        grants = await extractor.extract(text, source_url, "Solana")
    """

    def __init__(self, llm: CompletionClient, settings: Optional[ScraperSettings] = None):
        self.llm = llm
        self.settings = settings or ScraperSettings()

    async def extract(
        self,
        content: str,
        source_url: str,
        default_chain: str,
    ) -> list[ExtractedGrant]:
        """
        Extract grants from content.

        Args:
            content: Raw page text
            source_url: URL the content came from
            default_chain: Chain used when the model omits one

        Returns:
            List of ExtractedGrant (possibly empty)

        Raises:
            ExtractionError: The model call failed or timed out
        """
        log = logger.bind(source_url=source_url)
        user_prompt = build_user_prompt(content, source_url, default_chain)

        try:
            response = await asyncio.wait_for(
                self.llm.complete(
                    SYSTEM_PROMPT,
                    user_prompt,
                    temperature=self.settings.llm_temperature,
                    max_tokens=self.settings.llm_max_tokens,
                ),
                timeout=self.settings.llm_timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise ExtractionError(
                f"LLM call timed out after {self.settings.llm_timeout_s}s"
            ) from e
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"LLM call failed: {e}") from e

        try:
            items = parse_response(response)
        except ExtractionParseError as e:
            log.warning(
                "extraction_parse_failed",
                error=str(e),
                response=(response or "")[:500],
            )
            return []

        grants = []
        for index, item in enumerate(items):
            grant = self._validate_item(item, default_chain)
            if grant is None:
                log.warning("extracted_item_dropped", index=index)
                continue
            grants.append(grant)

        log.info("grants_extracted", count=len(grants), raw_items=len(items))
        return grants

    def _validate_item(self, item: Any, default_chain: str) -> Optional[ExtractedGrant]:
        """Validate one raw item, defaulting the chain."""
        if not isinstance(item, dict):
            return None

        try:
            grant = ExtractedGrant.model_validate(item)
        except ValidationError as e:
            logger.debug("extracted_item_invalid", error=str(e))
            return None

        if not grant.chain:
            grant.chain = default_chain
        return grant
