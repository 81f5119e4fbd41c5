"""Configuration loading.

Settings come from, in increasing precedence: built-in defaults, a YAML config
file, environment variables, and finally CLI options applied by the caller.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

DEFAULT_CONFIG_PATH = Path.home() / ".ebs-backup" / "config.yaml"

ENV_CONFIG_PATH = "EBS_BACKUP_CONFIG"
ENV_REGIONS = "EBS_BACKUP_REGIONS"
ENV_INTERVAL = "EBS_BACKUP_INTERVAL_SECS"
ENV_DRY_RUN = "EBS_BACKUP_DRY_RUN"
ENV_LOG_LEVEL = "EBS_BACKUP_LOG_LEVEL"
ENV_AWS_PROFILE = "AWS_PROFILE"


class ConfigError(ValueError):
    """Raised when the config file cannot be used."""


@dataclass
class Config:
    """Process configuration.

    Attributes:
        regions: Ordered regions to process (None = default region)
        interval_seconds: Polling interval; None runs a single pass
        dry_run: Log intended actions without applying them
        aws_profile: AWS profile name (optional)
        log_level: Log level name
    """

    regions: Optional[List[str]] = None
    interval_seconds: Optional[int] = None
    dry_run: bool = False
    aws_profile: Optional[str] = None
    log_level: str = "INFO"
    source_path: Optional[Path] = field(default=None, repr=False)

    @classmethod
    def load(cls, config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Load configuration from the YAML file and environment.

        Args:
            config_path: Explicit config file path (default: $EBS_BACKUP_CONFIG or ~/.ebs-backup/config.yaml)
            environ: Environment mapping (default: os.environ)

        Returns:
            Config instance

        Raises:
            ConfigError: If the config file is unreadable or not a mapping
        """
        env = os.environ if environ is None else environ
        config = cls()

        path = Path(config_path or env.get(ENV_CONFIG_PATH) or DEFAULT_CONFIG_PATH).expanduser()
        if path.exists():
            config._apply_file(path)
        elif config_path:
            raise ConfigError(f"Config file not found: {path}")

        config._apply_env(env)
        return config

    def _apply_file(self, path: Path) -> None:
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        self._apply_mapping(data)
        self.source_path = path

    def _apply_mapping(self, data: Dict[str, Any]) -> None:
        if "regions" in data:
            regions = data["regions"]
            if isinstance(regions, str):
                regions = parse_regions(regions)
            self.regions = list(regions) if regions else None

        if "interval_seconds" in data:
            self.interval_seconds = parse_interval(data["interval_seconds"])

        if "dry_run" in data:
            self.dry_run = data["dry_run"] is True or data["dry_run"] == "true"

        if data.get("aws_profile"):
            self.aws_profile = str(data["aws_profile"])

        if data.get("log_level"):
            self.log_level = str(data["log_level"]).upper()

    def _apply_env(self, env: Mapping[str, str]) -> None:
        regions = parse_regions(env.get(ENV_REGIONS))
        if regions:
            self.regions = regions

        if ENV_INTERVAL in env:
            self.interval_seconds = parse_interval(env[ENV_INTERVAL])

        if ENV_DRY_RUN in env:
            self.dry_run = env[ENV_DRY_RUN] == "true"

        if env.get(ENV_AWS_PROFILE):
            self.aws_profile = env[ENV_AWS_PROFILE]

        if env.get(ENV_LOG_LEVEL):
            self.log_level = env[ENV_LOG_LEVEL].upper()


def parse_regions(value: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated region list; empty means no regions configured."""
    if not value:
        return None
    regions = [region.strip() for region in value.split(",") if region.strip()]
    return regions or None


def parse_interval(value: Any) -> Optional[int]:
    """Parse a polling interval; anything that is not a non-negative integer disables polling."""
    if value is None or isinstance(value, bool):
        return None
    try:
        interval = int(value)
    except (TypeError, ValueError):
        return None
    return interval if interval >= 0 else None
