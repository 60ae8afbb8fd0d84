# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the digitizing core.
"""

from core.config.defaults import (
    SnapDefaults,
    WorldDefaults,
    ImportDefaults,
    IdIndexDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "SnapDefaults",
    "WorldDefaults",
    "ImportDefaults",
    "IdIndexDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
