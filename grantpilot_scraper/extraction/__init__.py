"""
LLM extraction layer.

- schema: versioned ExtractedGrant model
- prompts: system/user prompt templates
- llm: OpenAI / Claude completion clients
- extractor: response parsing and validation
"""

from .schema import ExtractedGrant, EXTRACTION_SCHEMA_VERSION
from .llm import LLMClient, OpenAIProvider, ClaudeProvider
from .extractor import GrantExtractor, parse_response, strip_code_fence

__all__ = [
    "ExtractedGrant",
    "EXTRACTION_SCHEMA_VERSION",
    "LLMClient",
    "OpenAIProvider",
    "ClaudeProvider",
    "GrantExtractor",
    "parse_response",
    "strip_code_fence",
]
