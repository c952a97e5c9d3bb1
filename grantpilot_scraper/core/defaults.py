"""
Heuristic fallbacks for advisory grant fields.

Used only when extraction left fit / time-to-apply fields unset, so
every persisted grant carries non-null advisory text.
"""

from typing import Optional

from grantpilot_scraper.extraction.schema import ExtractedGrant

# Category keyword -> fit score, checked in order
FIT_SCORES = [
    ("defi", "Strong for DeFi protocols"),
    ("l2", "Strong for rollup and L2 infrastructure teams"),
    ("infra", "Ideal for infrastructure projects"),
    ("zk", "Strong for zero-knowledge research teams"),
    ("gaming", "Strong for Web3 game studios"),
    ("consumer", "Good for consumer app builders"),
    ("public goods", "Ideal for open-source public goods"),
    ("tooling", "Strong for developer tooling teams"),
    ("hackathon", "Good for early-stage hackathon teams"),
    ("ecosystem", "Good for early-stage ecosystem teams"),
]

FIT_DESCRIPTIONS = [
    ("defi", "Best suited for teams building lending, trading or yield products with live users."),
    ("l2", "Best suited for teams working on scaling, sequencing or bridging infrastructure."),
    ("infra", "Best suited for teams shipping core infrastructure other builders depend on."),
    ("zk", "Best suited for teams with applied cryptography or proving-system expertise."),
    ("gaming", "Best suited for studios with a playable build and an onchain game loop."),
    ("consumer", "Best suited for teams with a consumer product and early traction."),
    ("public goods", "Best suited for maintainers of open-source work that benefits the whole ecosystem."),
    ("tooling", "Best suited for teams building SDKs, indexers or developer experience tools."),
    ("hackathon", "Best suited for small teams who can ship a prototype quickly."),
    ("ecosystem", "Best suited for teams bringing new users or projects into the ecosystem."),
]

LARGE_AMOUNT_MARKERS = ["100k", "150k", "200k", "250k", "500k", "1m"]
MID_AMOUNT_MARKERS = ["50k", "25k", "30k"]


def _match(text: Optional[str], table: list[tuple[str, str]]) -> Optional[str]:
    lowered = (text or "").lower()
    for keyword, value in table:
        if keyword in lowered:
            return value
    return None


def estimate_fit_score(grant: ExtractedGrant) -> str:
    """Fit score from the category, else a chain-based phrase."""
    score = _match(grant.category, FIT_SCORES)
    if score:
        return score
    chain = grant.chain or "Multichain"
    return f"Good fit for {chain} builders"


def estimate_fit_description(grant: ExtractedGrant) -> str:
    description = _match(grant.category, FIT_DESCRIPTIONS)
    if description:
        return description
    chain = grant.chain or "Multichain"
    return f"Best suited for teams building in the {chain} ecosystem."


def estimate_time_to_apply(grant: ExtractedGrant) -> str:
    """Time-to-apply estimate from funding size markers in the amount text."""
    amount = (grant.amount or "").lower()
    if any(marker in amount for marker in LARGE_AMOUNT_MARKERS):
        return "1-2 weeks"
    if any(marker in amount for marker in MID_AMOUNT_MARKERS):
        return "2-4 hours"
    return "1-2 hours"


def estimate_time_description(grant: ExtractedGrant) -> str:
    estimate = grant.time_to_apply or estimate_time_to_apply(grant)
    if "week" in estimate:
        return "Requires a detailed proposal with milestones, budget and team background."
    if "4 hours" in estimate:
        return "Requires a pitch deck, project metrics and a short written application."
    return "Simple online form with a short project description."
