"""
YAML configuration loader with validation.

Loads pipeline settings and grant source seeds from YAML files with:
- Environment variable substitution
- Required field validation
- Default values
"""

import os
import re
from pathlib import Path
from typing import Optional

import yaml
import structlog

from grantpilot_scraper.config.settings import ScraperSettings
from grantpilot_scraper.core.models import GrantSource, ScrapeStrategy
from grantpilot_scraper.core.store import Store

logger = structlog.get_logger(__name__)


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variables in text.

    Supports formats:
    - ${VAR_NAME} - empty string (with a warning) if missing
    - ${VAR_NAME:-default} - optional with default

    Args:
        text: Text with env var placeholders

    Returns:
        Text with substituted values
    """
    def replace(match):
        var_expr = match.group(1)
        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)
        else:
            value = os.getenv(var_expr)
            if value is None:
                logger.warning("env_var_not_set", var=var_expr)
                return ""
            return value

    return re.sub(r"\$\{([^}]+)\}", replace, text)


class ConfigLoader:
    """
    Configuration loader for the pipeline.

    Reads one YAML file with a `settings:` section and a `sources:` list.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files
                       (defaults to package config directory)
        """
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = Path(__file__).parent

    def load_file(self, filename: str) -> dict:
        """
        Load YAML config file.

        Args:
            filename: Config file name (relative to config_dir)

        Returns:
            Parsed config dict
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            raise FileNotFoundError(f"Config file not found: {filepath}")

        logger.info("loading_config", file=str(filepath))

        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()

        content = substitute_env_vars(content)
        config = yaml.safe_load(content)

        return config or {}

    def load_settings(self, filename: str = "sources.yml") -> ScraperSettings:
        """Load the settings section, then overlay GRANTPILOT_* env vars."""
        config = self.load_file(filename)
        settings = ScraperSettings.from_dict(config.get("settings") or {})
        return ScraperSettings.from_env(settings)

    def load_sources(self, filename: str = "sources.yml") -> list[GrantSource]:
        """
        Load source definitions from YAML.

        Invalid entries are logged and skipped.

        Args:
            filename: Sources config file name

        Returns:
            List of GrantSource objects (not yet persisted)
        """
        config = self.load_file(filename)

        sources = []
        for source_data in config.get("sources") or []:
            try:
                source = self._parse_source(source_data)
                sources.append(source)
                logger.debug("source_loaded", name=source.name)
            except (ValueError, TypeError) as e:
                logger.error(
                    "source_load_failed",
                    source=source_data.get("name", "unknown") if isinstance(source_data, dict) else "unknown",
                    error=str(e),
                )

        return sources

    def _parse_source(self, data: dict) -> GrantSource:
        """
        Parse source definition into GrantSource.

        Raises:
            ValueError: If required fields are missing or the strategy is unknown
        """
        if not isinstance(data, dict):
            raise TypeError("Source entry must be a mapping")

        required = ["name", "url", "chain_name"]
        for field in required:
            if not data.get(field):
                raise ValueError(f"Missing required field: {field}")

        strategy = data.get("scrape_strategy", ScrapeStrategy.STATIC_HTML.value)
        try:
            strategy = ScrapeStrategy(strategy)
        except ValueError:
            raise ValueError(f"Unknown scrape_strategy: {strategy}")

        return GrantSource(
            name=data["name"],
            url=data["url"],
            chain_name=data["chain_name"],
            scrape_strategy=strategy,
            is_active=bool(data.get("is_active", True)),
        )


def _split_path(config_path: Optional[str]) -> tuple[ConfigLoader, str]:
    if config_path:
        return ConfigLoader(str(Path(config_path).parent)), Path(config_path).name
    return ConfigLoader(), "sources.yml"


def load_sources(config_path: Optional[str] = None) -> list[GrantSource]:
    """
    Convenience function to load source seeds.

    Args:
        config_path: Optional path to sources.yml

    Returns:
        List of GrantSource objects
    """
    loader, filename = _split_path(config_path)
    return loader.load_sources(filename)


def load_settings(config_path: Optional[str] = None) -> ScraperSettings:
    """Convenience function to load settings."""
    loader, filename = _split_path(config_path)
    return loader.load_settings(filename)


async def seed_sources(store: Store, sources: list[GrantSource]) -> int:
    """
    Insert seed sources if the source collection is empty.

    Returns:
        Number of sources inserted (0 when already seeded)
    """
    existing = await store.sources.count()
    if existing > 0:
        logger.info("sources_already_seeded", count=existing)
        return 0

    for source in sources:
        await store.sources.save(source)

    logger.info("sources_seeded", count=len(sources))
    return len(sources)
