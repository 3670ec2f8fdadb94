"""Configuration management for Veridis."""

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

from .authz.service import DEFAULT_INVITE_TTL_HOURS, parse_privileged_ids
from .state import MAX_EVENTS

GOD_IDS_ENV = "VERIDIS_GOD_TELEGRAM_IDS"


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent

        # Stop if we reach filesystem root
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .veridis/config.toml if it exists."""
    config_file = repo_root / ".veridis" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        # If config file is malformed, ignore it
        return None


def _get_repo_config_value(data: Optional[dict], keys: list[str]) -> Any:
    """Safely get a nested repo config value."""
    if not data:
        return None
    current: Any = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _setting(env_name: str, repo_value: Any, default: Any) -> Any:
    value = os.environ.get(env_name)
    if value is not None and value.strip():
        return value.strip()
    if repo_value is not None:
        return repo_value
    return default


def _as_int(value: Any, *, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid config: {name} must be an int")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValueError(f"Invalid config: {name} must be an int")


def _as_float(value: Any, *, name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Invalid config: {name} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid config: {name} must be a number") from None


def _as_id_set(value: Any) -> frozenset[str]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(str(v).strip() for v in value if str(v).strip())
    return parse_privileged_ids(str(value) if value is not None else None)


class VeridisConfig(BaseModel):
    """Configuration consumed by the Veridis core and its bindings."""

    god_external_ids: frozenset[str] = Field(default_factory=frozenset)
    authz_store_path: Path = Field(default=Path("state/authz.json"))
    max_events: int = Field(default=MAX_EVENTS, ge=1)
    invite_ttl_hours: float = Field(default=DEFAULT_INVITE_TTL_HOURS)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, store_path: Optional[str] = None) -> "VeridisConfig":
        """Load configuration with the following precedence:

        1. Explicit arguments (CLI options)
        2. Environment variables
        3. repo-local .veridis/config.toml (walk upward from CWD)
        4. Defaults

        Args:
            store_path: Authz store path from the CLI --store option

        Raises:
            ValueError: If a numeric setting is malformed
        """
        repo_config = _load_repo_config_data(_find_repo_root(Path.cwd()))

        def repo(*keys: str) -> Any:
            return _get_repo_config_value(repo_config, list(keys))

        store_value = store_path or _setting(
            "VERIDIS_AUTHZ_STORE_PATH", repo("authz", "store_path"), "state/authz.json"
        )

        return cls(
            god_external_ids=_as_id_set(_setting(GOD_IDS_ENV, repo("authz", "god_ids"), "")),
            authz_store_path=Path(str(store_value)).expanduser(),
            max_events=_as_int(
                _setting("VERIDIS_MAX_EVENTS", repo("events", "max_events"), MAX_EVENTS),
                name="VERIDIS_MAX_EVENTS",
            ),
            invite_ttl_hours=_as_float(
                _setting("VERIDIS_INVITE_TTL_HOURS", repo("authz", "invite_ttl_hours"), DEFAULT_INVITE_TTL_HOURS),
                name="VERIDIS_INVITE_TTL_HOURS",
            ),
            host=str(_setting("HOST", repo("server", "host"), "0.0.0.0")),
            port=_as_int(_setting("PORT", repo("server", "port"), 3001), name="PORT"),
        )
