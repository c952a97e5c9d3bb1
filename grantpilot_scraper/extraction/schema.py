"""
Versioned output schema for LLM grant extraction.

The schema is declared once as a pydantic model; the prompt renders
its field descriptions, and responses are validated against it
independently of the prompt wording.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EXTRACTION_SCHEMA_VERSION = "2"

CHAINS = [
    "BNB Chain",
    "Solana",
    "Ethereum",
    "Polygon",
    "Base",
    "Arbitrum",
    "Optimism",
    "Aptos",
    "Sui",
    "Near",
    "Scroll",
]
MULTICHAIN = "Multichain"

CATEGORIES = [
    "Infra",
    "DeFi",
    "Gaming",
    "Consumer",
    "Public Goods",
    "Ecosystem",
    "Tooling",
    "ZK",
    "L2 Infra",
    "Hackathons",
]

STATUSES = ["Open", "Upcoming", "Closed"]

REQUIRED_FIELDS = [
    "title",
    "chain",
    "category",
    "tag",
    "amount",
    "status",
    "deadline",
    "summary",
    "focus",
    "link",
]

OPTIONAL_FIELDS = [
    "fit_score",
    "fit_description",
    "time_to_apply",
    "time_to_apply_description",
]


class ExtractedGrant(BaseModel):
    """One grant mention as returned by the model (not persisted)."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(description="Official grant program name")
    chain: Optional[str] = Field(
        None,
        description=f"Primary blockchain, one of: {', '.join(CHAINS)}; or '{MULTICHAIN}' if several",
    )
    category: str = Field("", description=f"Exactly one of: {', '.join(CATEGORIES)}")
    tag: str = Field("", description="Short tag like 'Infra · DeFi · Tooling' (max 3 items)")
    amount: str = Field("", description="Funding range as shown, e.g. 'Up to $150k', '$5k - $50k', 'Varies'")
    status: str = Field("", description=f"One of: {', '.join(STATUSES)}")
    deadline: str = Field("", description="Exact date, 'Rolling', or an estimated quarter")
    summary: str = Field("", description="2-3 sentence summary of what the grant supports")
    focus: str = Field("", description="1-2 sentences on the ideal applicant profile")
    link: str = Field("", description="Application or program URL")

    fit_score: Optional[str] = Field(
        None, description="Short assessment like 'Strong for DeFi builders'"
    )
    fit_description: Optional[str] = Field(
        None, description="1 sentence on who this grant is best suited for"
    )
    time_to_apply: Optional[str] = Field(
        None, description="Estimated effort like '30-45 minutes', '2-3 hours' or '1-2 weeks'"
    )
    time_to_apply_description: Optional[str] = Field(
        None, description="1 sentence on what the application requires"
    )

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator(
        "category", "tag", "amount", "status", "deadline", "summary", "focus", "link",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, value):
        return "" if value is None else str(value)

    @field_validator(
        "chain", "fit_score", "fit_description", "time_to_apply", "time_to_apply_description",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None


def describe_schema() -> str:
    """Render the schema as a field list for the prompt."""
    lines = []
    for name, info in ExtractedGrant.model_fields.items():
        marker = "(OPTIONAL) " if name in OPTIONAL_FIELDS else ""
        lines.append(f"- {name}: {marker}{info.description}")
    return "\n".join(lines)
