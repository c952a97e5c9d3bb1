"""
Language model clients used by the grant extractor.

Supports multiple providers:
- OpenAI chat completions
- Anthropic Claude messages

Both expose the same completion call; the extractor never talks to a
vendor SDK directly.
"""

import os
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from grantpilot_scraper.core.errors import ExtractionError

logger = structlog.get_logger(__name__)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name = "base"

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """Return the raw text completion."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is configured and available."""


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or "gpt-4o-mini"
        self.timeout = timeout
        self._client = None

    def is_available(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.api_key)

    def _get_client(self):
        """Lazy-load OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        client = self._get_client()

        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class ClaudeProvider(LLMProvider):
    """Anthropic Claude provider."""

    name = "claude"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self.model = model or "claude-3-5-haiku-latest"
        self.timeout = timeout
        self._client = None

    def is_available(self) -> bool:
        """Check if Anthropic API key is configured."""
        return bool(self.api_key)

    def _get_client(self):
        """Lazy-load Anthropic client."""
        if self._client is None:
            import anthropic
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        client = self._get_client()

        message = await client.messages.create(
            model=self.model,
            system=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[
                {"role": "user", "content": user_prompt}
            ],
        )

        return "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )


class LLMClient:
    """
    Provider-selecting completion client.

    Preference order when no provider is forced:
    1. OpenAI
    2. Claude

    Usage:
        client = LLMClient()
        text = await client.complete(system, user, temperature=0.3, max_tokens=2000)
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
        openai_api_key: Optional[str] = None,
        anthropic_api_key: Optional[str] = None,
    ):
        """
        Initialize LLM client.

        Args:
            provider: Force specific provider ('openai', 'claude') or None for auto
            model: Model override for the selected provider
            timeout: Per-request timeout in seconds
            openai_api_key: Override env OPENAI_API_KEY
            anthropic_api_key: Override env ANTHROPIC_API_KEY
        """
        self.providers: dict[str, LLMProvider] = {
            "openai": OpenAIProvider(api_key=openai_api_key, model=model, timeout=timeout),
            "claude": ClaudeProvider(api_key=anthropic_api_key, model=model, timeout=timeout),
        }
        self.forced_provider = provider
        self._selected_provider: Optional[LLMProvider] = None

    def is_available(self) -> bool:
        """Check if any LLM provider is available."""
        return any(p.is_available() for p in self.providers.values())

    def get_provider(self) -> Optional[LLMProvider]:
        """Get the selected/available provider."""
        if self._selected_provider:
            return self._selected_provider

        if self.forced_provider:
            provider = self.providers.get(self.forced_provider)
            if provider and provider.is_available():
                self._selected_provider = provider
                return provider
            logger.warning(
                "forced_provider_not_available",
                provider=self.forced_provider,
            )

        for name in ["openai", "claude"]:
            provider = self.providers[name]
            if provider.is_available():
                self._selected_provider = provider
                logger.info("llm_provider_selected", provider=name)
                return provider

        return None

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """
        Complete with the selected provider.

        Raises:
            ExtractionError: No provider configured
        """
        provider = self.get_provider()
        if not provider:
            raise ExtractionError("No LLM provider available (set OPENAI_API_KEY or ANTHROPIC_API_KEY)")

        return await provider.complete(
            system_prompt,
            user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )
