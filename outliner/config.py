"""Configuration management for Outliner.

Settings decide the open policies of the reducer (out-of-range positions,
subitems of a deleted item) and how much checking and logging a replay does.

Configuration Resolution Order:
1. Environment variables (highest priority)
2. TOML config file ([replay] table)
3. Replay profile defaults
"""

import os
import sys
from pathlib import Path
from typing import Any, Optional

from .exceptions import ConfigurationError

# Python 3.11+ has tomllib in stdlib, otherwise use tomli
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

ENV_PREFIX = "OUTLINER_"

POSITION_POLICIES = ("strict", "clamp")
ORPHAN_POLICIES = ("cascade", "reparent", "reject")
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

SETTING_KEYS = ("profile", "position_policy", "orphan_policy", "verify_invariants", "log_level")


def load_toml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config.toml file

    Returns:
        Dictionary with configuration sections

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If config file is invalid TOML
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(
                f"Invalid TOML in {config_path}: {e}",
                details={"path": str(config_path)},
            ) from e


def get_config_path(config_override: Optional[Path] = None) -> Path:
    """Get configuration file path.

    Examples:
        >>> get_config_path()
        Path('~/.config/outliner/config.toml').expanduser()
    """
    if config_override:
        return Path(config_override)

    env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
    if env_path:
        return Path(env_path)

    return Path.home() / ".config/outliner/config.toml"


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"Invalid boolean for {key}: {value!r}")


def _check_keys(values: dict[str, Any], source: str) -> None:
    unknown = sorted(set(values) - set(SETTING_KEYS))
    if unknown:
        raise ConfigurationError(
            f"Unknown setting(s) in {source}: {unknown}. Available: {list(SETTING_KEYS)}",
            details={"unknown": unknown},
        )


class ReplayProfile:
    """Replay profile settings.

    Profiles bundle the policy choices; individual keys can still be
    overridden from TOML or the environment.
    """

    PROFILES = {
        "standard": {
            "position_policy": "strict",
            "orphan_policy": "cascade",
            "verify_invariants": False,
            "log_level": "info",
        },
        "paranoid": {
            "position_policy": "strict",
            "orphan_policy": "reject",
            "verify_invariants": True,
            "log_level": "debug",
        },
    }

    @classmethod
    def get_profile(cls, name: str) -> dict[str, Any]:
        """Get replay profile settings.

        Raises:
            ConfigurationError: If profile name is unknown
        """
        if name not in cls.PROFILES:
            raise ConfigurationError(
                f"Unknown replay profile: {name}. "
                f"Available: {list(cls.PROFILES.keys())}"
            )
        return cls.PROFILES[name].copy()


class Settings:
    """Reducer settings with TOML and environment support.

    Attributes:
        profile: Name of the replay profile the defaults came from
        position_policy: "strict" rejects positions past the end, "clamp" appends
        orphan_policy: What deleting an item with subitems does
            ("cascade", "reparent" or "reject")
        verify_invariants: Audit the whole store after every fact
        log_level: Log level name for setup_logging()
    """

    profile: str
    position_policy: str
    orphan_policy: str
    verify_invariants: bool
    log_level: str

    def __init__(
        self,
        config_path: Optional[Path] = None,
        load_file: bool = True,
        **overrides: Any,
    ):
        """Initialize settings.

        Args:
            config_path: Optional explicit path to config.toml
            load_file: Set False to ignore config files entirely
            **overrides: Explicit values that win over every other source
        """
        self._config: dict[str, Any] = {}

        if load_file:
            path = get_config_path(config_path)
            if path.exists():
                self._config = load_toml_config(path)

        self._apply_config(overrides)
        self._validate()

    def _apply_config(self, overrides: dict[str, Any]) -> None:
        """Apply settings in order: profile defaults, TOML, environment, overrides."""
        replay_config = self._config.get("replay", {})
        if not isinstance(replay_config, dict):
            raise ConfigurationError("[replay] must be a TOML table")
        _check_keys(replay_config, "[replay] table")
        _check_keys(overrides, "Settings()")

        self.profile = overrides.get(
            "profile",
            os.environ.get(f"{ENV_PREFIX}PROFILE", replay_config.get("profile", "standard")),
        )
        for key, value in ReplayProfile.get_profile(self.profile).items():
            setattr(self, key, value)

        for key, value in replay_config.items():
            if key != "profile":
                setattr(self, key, value)

        for key in ("position_policy", "orphan_policy", "verify_invariants", "log_level"):
            env_var_name = f"{ENV_PREFIX}{key.upper()}"
            if env_var_name in os.environ:
                setattr(self, key, os.environ[env_var_name])

        for key, value in overrides.items():
            if key != "profile":
                setattr(self, key, value)

    def _validate(self) -> None:
        self.verify_invariants = _parse_bool(self.verify_invariants, "verify_invariants")
        self.log_level = str(self.log_level).lower()

        if self.position_policy not in POSITION_POLICIES:
            raise ConfigurationError(
                f"Unknown position policy: {self.position_policy}. "
                f"Available: {list(POSITION_POLICIES)}"
            )
        if self.orphan_policy not in ORPHAN_POLICIES:
            raise ConfigurationError(
                f"Unknown orphan policy: {self.orphan_policy}. "
                f"Available: {list(ORPHAN_POLICIES)}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}. Available: {list(LOG_LEVELS)}"
            )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return getattr(self, key, default)

    def __repr__(self) -> str:
        return (
            f"Settings(profile={self.profile!r}, position_policy={self.position_policy!r}, "
            f"orphan_policy={self.orphan_policy!r}, verify_invariants={self.verify_invariants!r}, "
            f"log_level={self.log_level!r})"
        )
