# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for snapping, worlds, import, id index
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the digitizing core.
These can be overridden via DIGITIZER_* environment variables or by
constructing the dataclasses directly (tests do the latter).

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from core.contracts import GridSnapMode


ENV_PREFIX = "DIGITIZER_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


@dataclass(frozen=True)
class SnapDefaults:
    """
    Defaults for coordinate snapping and rounding.

    Interactive snapping and export rounding are separate concerns:
    grid mode drives pointer input, export_step drives payload output.
    """
    grid_mode: GridSnapMode = GridSnapMode.AUTO
    grid_enabled: bool = False

    # Assist line capture distance (world units)
    assist_threshold: float = 20.0

    # Export rounding step
    export_step: float = 0.1

    # Manual coordinate entry must be a multiple of this step
    manual_step: float = 0.1

    # Max distance from the draft outline for a control-point insert
    insert_threshold: float = 50.0

    @classmethod
    def from_env(cls) -> "SnapDefaults":
        """Create from environment variables."""
        return cls(
            grid_mode=GridSnapMode(_env("GRID_MODE", GridSnapMode.AUTO.value)),
            grid_enabled=_env("GRID_ENABLED", "false").lower() in ("1", "true", "yes"),
            assist_threshold=float(_env("ASSIST_THRESHOLD", "20")),
            export_step=float(_env("EXPORT_STEP", "0.1")),
            manual_step=float(_env("MANUAL_STEP", "0.1")),
            insert_threshold=float(_env("INSERT_THRESHOLD", "50")),
        )


@dataclass(frozen=True)
class WorldDefaults:
    """
    Fixed world id -> code table.

    The code is what lands in the payload ``World`` field.
    """
    world_codes: Dict[str, int] = field(default_factory=lambda: {
        "zth": 0,
        "naraku": 1,
        "houtu": 2,
        "eden": 3,
        "laputa": 4,
        "yunduan": 5,
    })
    default_world: str = "zth"

    def code_for(self, world_id: str) -> Optional[int]:
        """World code for an id, or None when the id is unknown."""
        return self.world_codes.get(world_id)

    @classmethod
    def from_env(cls) -> "WorldDefaults":
        """Create from environment variables."""
        return cls(default_world=_env("DEFAULT_WORLD", "zth"))


@dataclass(frozen=True)
class ImportDefaults:
    """Defaults for bulk import reporting."""
    # Max failure lines shown in an import summary
    summary_limit: int = 10

    @classmethod
    def from_env(cls) -> "ImportDefaults":
        """Create from environment variables."""
        return cls(summary_limit=int(_env("IMPORT_SUMMARY_LIMIT", "10")))


@dataclass(frozen=True)
class IdIndexDefaults:
    """
    Defaults for the duplicate-id lookup run before a preview mount.

    ``base_url`` may contain a ``{world}`` placeholder; each file in
    ``files`` is fetched as ``{base_url}/{file}``.
    """
    base_url: str = ""
    files: Tuple[str, ...] = ()

    cache_ttl_seconds: float = 60.0
    spinner_delay_seconds: float = 1.0
    request_timeout_seconds: float = 15.0

    def url_for(self, world_id: str, file_name: str) -> str:
        base = self.base_url.format(world=world_id).rstrip("/")
        return f"{base}/{file_name}"

    @classmethod
    def from_env(cls) -> "IdIndexDefaults":
        """Create from environment variables."""
        raw_files = _env("ID_INDEX_FILES", "")
        return cls(
            base_url=_env("ID_INDEX_BASE_URL", ""),
            files=tuple(f.strip() for f in raw_files.split(",") if f.strip()),
            cache_ttl_seconds=float(_env("ID_INDEX_CACHE_TTL", "60")),
            spinner_delay_seconds=float(_env("ID_INDEX_SPINNER_DELAY", "1.0")),
            request_timeout_seconds=float(_env("ID_INDEX_TIMEOUT", "15")),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    snap: SnapDefaults = field(default_factory=SnapDefaults)
    worlds: WorldDefaults = field(default_factory=WorldDefaults)
    imports: ImportDefaults = field(default_factory=ImportDefaults)
    id_index: IdIndexDefaults = field(default_factory=IdIndexDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            snap=SnapDefaults.from_env(),
            worlds=WorldDefaults.from_env(),
            imports=ImportDefaults.from_env(),
            id_index=IdIndexDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ENV_PREFIX",
    "SnapDefaults",
    "WorldDefaults",
    "ImportDefaults",
    "IdIndexDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
