"""
Configuration file loading for pluglint.

Loads .pluglint.yaml from project root or home directory.
Config values provide defaults that can be overridden by CLI options.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class ConfigResources:
    """Resource lookup settings from config file."""
    subfolders: list[str] = field(default_factory=lambda: ["bpmn", "fhir"])
    archive_suffixes: list[str] = field(default_factory=lambda: [".jar"])
    temp_prefix: str = "pluglint-dependency-"


@dataclass
class ConfigTypes:
    """Type inspection settings from config file."""
    # Platform API archives added to the ambient type space
    ambient_archives: list[Path] = field(default_factory=list)


@dataclass
class Config:
    """Loaded configuration."""
    project_name: str = ""
    resources: ConfigResources = field(default_factory=ConfigResources)
    types: ConfigTypes = field(default_factory=ConfigTypes)
    source_path: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: dict, source_path: Optional[Path] = None) -> "Config":
        """Create Config from parsed YAML dict."""
        config = cls(source_path=source_path)

        if "project" in data and isinstance(data["project"], dict):
            config.project_name = data["project"].get("name", "")

        if "resources" in data and isinstance(data["resources"], dict):
            res = data["resources"]
            subfolders = res.get("subfolders")
            if isinstance(subfolders, list):
                config.resources.subfolders = [str(s).strip("/") for s in subfolders]
            suffixes = res.get("archive_suffixes")
            if isinstance(suffixes, list):
                config.resources.archive_suffixes = [
                    s if str(s).startswith(".") else f".{s}" for s in map(str, suffixes)
                ]
            config.resources.temp_prefix = res.get("temp_prefix", config.resources.temp_prefix)

        if "types" in data and isinstance(data["types"], dict):
            archives = data["types"].get("ambient_archives")
            if isinstance(archives, list):
                base = source_path.parent if source_path else Path.cwd()
                config.types.ambient_archives = [
                    p if p.is_absolute() else base / p
                    for p in (Path(str(a)).expanduser() for a in archives)
                ]

        return config


# Global cached config
_cached_config: Optional[Config] = None


def load_config(path: Optional[Path] = None, use_cache: bool = True) -> Config:
    """Load .pluglint.yaml from project root or home.

    Search order:
    1. Explicit path if provided
    2. .pluglint.yaml in current directory
    3. .pluglint.yaml in parent directories (up to git root or /)
    4. ~/.pluglint.yaml in home directory

    Args:
        path: Explicit path to config file
        use_cache: Whether to use cached config (default True)

    Returns:
        Loaded Config, or default Config if no file found
    """
    global _cached_config

    if use_cache and _cached_config is not None:
        return _cached_config

    config_path = None

    if path and path.exists():
        config_path = path
    else:
        search_dir = Path.cwd()
        while search_dir != search_dir.parent:
            candidate = search_dir / ".pluglint.yaml"
            if candidate.exists():
                config_path = candidate
                break
            if (search_dir / ".git").exists():
                break
            search_dir = search_dir.parent

        if config_path is None:
            home_config = Path.home() / ".pluglint.yaml"
            if home_config.exists():
                config_path = home_config

    if config_path is None:
        config = Config()
    else:
        try:
            data = yaml.safe_load(config_path.read_text())
            config = Config.from_dict(data or {}, source_path=config_path)
        except (yaml.YAMLError, OSError) as e:
            import logging
            logging.getLogger("pluglint.core.config").warning(
                f"Failed to load config from {config_path}: {e}"
            )
            config = Config()

    if use_cache:
        _cached_config = config

    return config


def clear_config_cache() -> None:
    """Clear the cached config (useful for testing)."""
    global _cached_config
    _cached_config = None
