"""
Prompt templates for grant extraction.
"""

from .schema import EXTRACTION_SCHEMA_VERSION, describe_schema

SYSTEM_PROMPT = (
    "You are a grant data extractor. Extract structured Web3 grant data "
    "from grant program pages and announcements."
)

USER_PROMPT_TEMPLATE = """Extract every Web3 grant program described in the content below.

Source URL: {source_url}
Default chain (use when the page does not name one): {default_chain}

Output schema (version {schema_version}):
{schema}

Fields marked OPTIONAL may be omitted. Only include them if you can make a reasonable
estimate from the requirements and application process described in the content.

Return format:
- If the page describes several grant programs, return a JSON array of objects.
- If it describes one grant program, return a single JSON object.
- If there is no grant program in the content, return {{"error": "No grant data found"}}.

Return ONLY valid JSON. No markdown, no explanation.

CONTENT:
{content}
"""


def build_user_prompt(content: str, source_url: str, default_chain: str) -> str:
    """Embed page content and the output schema into the user prompt."""
    return USER_PROMPT_TEMPLATE.format(
        source_url=source_url,
        default_chain=default_chain,
        schema_version=EXTRACTION_SCHEMA_VERSION,
        schema=describe_schema(),
        content=content,
    )
