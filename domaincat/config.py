"""Configuration loading for domaincat.

Loads settings from TOML config file with CLI override support.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli

from domaincat.aggregator import DEFAULT_WHITELIST
from domaincat.categories import Category, parse_category
from domaincat.errors import RegistrationConflict
from domaincat.normalizer import Dialect
from domaincat.sources import DEFAULT_DIRECTORIES, DEFAULT_SOURCES, DirectorySource, ListSource, Tier
from domaincat.store import CategoryStore

logger = logging.getLogger(__name__)


def get_default_config_path() -> Path:
    """Get the default config file path."""
    return Path.home() / ".config" / "domaincat" / "domaincat.toml"


def get_config_search_paths() -> list[Path]:
    """Get list of paths to search for config file."""
    return [
        Path("domaincat.toml"),  # Current directory
        Path.home() / ".config" / "domaincat" / "domaincat.toml",
        Path("/etc/domaincat/domaincat.toml"),
    ]


def find_config_file() -> Optional[Path]:
    """Find the first existing config file."""
    for path in get_config_search_paths():
        if path.exists():
            return path
    return None


@dataclass
class Config:
    """Loaded configuration with all sections."""

    # Artifact
    artifact_path: Path = field(
        default_factory=lambda: Path.home() / ".local" / "share" / "domaincat" / "domains.dcat"
    )

    # Build
    categories: list[Category] = field(default_factory=lambda: list(Category))
    tier: Tier = Tier.SMALL
    cache_dir: Path = field(default_factory=lambda: Path.home() / ".cache" / "domaincat")
    update_interval_hours: int = 24
    timeout_seconds: int = 30
    use_default_whitelist: bool = True
    extra_whitelist: set[str] = field(default_factory=set)

    # Sources
    use_default_sources: bool = True
    extra_sources: list[ListSource] = field(default_factory=list)

    # Overrides: tag name -> domains, registered at startup
    overrides: dict[str, list[str]] = field(default_factory=dict)

    def whitelist(self) -> set[str]:
        """Effective bad-category whitelist."""
        base = set(DEFAULT_WHITELIST) if self.use_default_whitelist else set()
        return base | {d.lower() for d in self.extra_whitelist}

    def source_catalog(self) -> list[ListSource]:
        """Built-in sources (unless disabled) followed by configured ones."""
        catalog = list(DEFAULT_SOURCES) if self.use_default_sources else []
        return catalog + list(self.extra_sources)

    def directory_catalog(self) -> list[DirectorySource]:
        """Built-in directory sources, unless default sources are disabled."""
        return list(DEFAULT_DIRECTORIES) if self.use_default_sources else []


def _parse_source(data: dict[str, Any]) -> ListSource:
    """Build a ListSource from a [[sources]] table.

    Raises:
        ValueError: If a field is missing or invalid
    """
    name = data.get("name")
    if not name:
        raise ValueError("source is missing 'name'")

    location = data.get("url") or data.get("path")
    if not location:
        raise ValueError(f"source {name!r} needs 'url' or 'path'")
    if "path" in data and "url" not in data:
        location = str(Path(location).expanduser())

    return ListSource(
        name=name,
        category=parse_category(data.get("category", "bad")),
        dialect=Dialect(data.get("dialect", "plain")),
        location=location,
        tier=Tier(data.get("tier", "small")),
        skip_lines=int(data.get("skip_lines", 0)),
        required=bool(data.get("required", False)),
    )


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from TOML file.

    Args:
        config_path: Explicit path to config file, or None to search

    Returns:
        Config object with loaded values
    """
    config = Config()

    # Find config file
    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        logger.debug("No config file found, using defaults")
        return config

    logger.info(f"Loading config from {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        logger.warning(f"Failed to load config file: {e}")
        return config

    # Artifact section
    if "artifact" in data:
        artifact = data["artifact"]
        if "path" in artifact:
            config.artifact_path = Path(artifact["path"]).expanduser()

    # Build section
    if "build" in data:
        build = data["build"]
        if "categories" in build:
            try:
                config.categories = [parse_category(name) for name in build["categories"]]
            except ValueError as e:
                logger.warning(f"Ignoring build.categories: {e}")
        if "tier" in build:
            try:
                config.tier = Tier(build["tier"])
            except ValueError:
                logger.warning(f"Unknown tier {build['tier']!r}, using {config.tier.value}")
        if "cache_dir" in build:
            config.cache_dir = Path(build["cache_dir"]).expanduser()
        if "update_interval_hours" in build:
            config.update_interval_hours = build["update_interval_hours"]
        if "timeout_seconds" in build:
            config.timeout_seconds = build["timeout_seconds"]
        if "default_whitelist" in build:
            config.use_default_whitelist = build["default_whitelist"]
        if "whitelist" in build:
            config.extra_whitelist = set(build["whitelist"])
        if "default_sources" in build:
            config.use_default_sources = build["default_sources"]

    # Sources (array of tables)
    for source_data in data.get("sources", []):
        try:
            config.extra_sources.append(_parse_source(source_data))
        except ValueError as e:
            logger.warning(f"Skipping invalid source: {e}")

    # Overrides section
    if "overrides" in data:
        for tag_name, domains in data["overrides"].items():
            config.overrides[tag_name] = list(domains)

    return config


def apply_overrides(store: CategoryStore, config: Config) -> int:
    """Register every configured override set into the store.

    Tags that are already registered are logged and left as they are.

    Returns:
        Number of tags registered
    """
    registered = 0
    for tag_name, domains in config.overrides.items():
        try:
            store.register(tag_name, domains)
            registered += 1
        except RegistrationConflict as e:
            logger.warning(f"Override not applied: {e}")
    return registered


def merge_cli_options(config: Config, **cli_options: Any) -> Config:
    """Merge CLI options into config (CLI takes precedence).

    Args:
        config: Base config from file
        **cli_options: CLI option overrides (None values are ignored)

    Returns:
        Config with CLI overrides applied
    """
    # Map CLI option names to config attributes
    mappings = {
        "artifact": "artifact_path",
        "tier": "tier",
        "category": "categories",
        "cache_dir": "cache_dir",
        "timeout": "timeout_seconds",
    }

    for cli_name, config_name in mappings.items():
        if cli_name in cli_options:
            value = cli_options[cli_name]
            # Only override if CLI value is meaningful
            if value is not None and value != () and value != "":
                if cli_name == "category":
                    value = [parse_category(name) for name in value]
                if cli_name == "tier":
                    value = Tier(value)
                if cli_name in ("artifact", "cache_dir"):
                    value = Path(value).expanduser()
                setattr(config, config_name, value)

    return config
