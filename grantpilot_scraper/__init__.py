"""
GrantPilot scraper - Web3 grant aggregation pipeline.

Architecture:
- core/: Models, store, HTTP client, reconciler, health tracking
- fetchers/: Fetch strategies (static HTML, headless browser, RSS)
- extraction/: LLM extraction (schema, prompts, providers)
- config/: Settings and YAML source seeds
- orchestrator.py / scheduler.py: Sweeps and scheduled jobs
"""

__version__ = "0.2.0"
__all__ = ["__version__"]
