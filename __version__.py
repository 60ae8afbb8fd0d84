# ============================================================================
# VERSION - FEATURE DIGITIZER
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# ============================================================================
"""
Version information for the feature digitizer core.

This is the single source of truth for the package version.
Updated manually for each release.
"""
# Version format: major.minor.patch
# Criteria for 0.3 - bulk import shares the commit validator
__version__ = "0.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"

EPOCH = 1
CODENAME = "Feature Digitizer"
