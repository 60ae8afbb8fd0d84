# ============================================================================
# SCHEMA REGISTRY
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Schemas - Schema class registration and lookup
# PURPOSE: Register and discover feature schema classes by FeatureKey
# CREATED: 19 OCT 2026
# ============================================================================
"""
Schema Registry

Central registry for feature schema classes. The draft session and the
import pipeline use it to resolve a class by key, by class code, or by
draw mode.

Design:
- Schema classes are registered at import time via decorator
- Registry is keyed by the closed FeatureKey enum (one instance per key)
- Fail-fast on duplicate registration
- validate_registry() reports FeatureKey members with no class
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type

from core.contracts import DrawMode, FeatureKey
from schemas.base import SchemaClass, SchemaError

logger = logging.getLogger(__name__)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class SchemaNotFoundError(SchemaError):
    """Raised when a schema key is not in the registry."""
    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Schema not found: {getattr(key, 'value', key)}")


class DuplicateSchemaError(SchemaError):
    """Raised when a schema key or class code is already registered."""
    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Schema already registered: {getattr(key, 'value', key)}")


# ============================================================================
# REGISTRY
# ============================================================================

# Global registry
_schemas: Dict[FeatureKey, SchemaClass] = {}
_schema_metadata: Dict[FeatureKey, Dict[str, Any]] = {}


def register_schema(cls: Type[SchemaClass]) -> Type[SchemaClass]:
    """
    Decorator to register a schema class.

    Example:
        @register_schema
        class StationSchema(PointSchema):
            KEY = FeatureKey.STATION
            CLASS_CODE = "STA"
    """
    key = FeatureKey(cls.KEY)
    if key in _schemas:
        raise DuplicateSchemaError(key)
    if cls.CLASS_CODE and find_by_class_code(cls.CLASS_CODE) is not None:
        raise DuplicateSchemaError(cls.CLASS_CODE)

    instance = cls()
    _schemas[key] = instance
    _schema_metadata[key] = {
        **instance.describe(),
        "class": cls.__name__,
        "module": cls.__module__,
        "registered_at": datetime.now(timezone.utc).isoformat(),
    }

    logger.debug(f"Registered schema: {key.value} ({cls.__module__}.{cls.__name__})")
    return cls


def get_schema(key: FeatureKey) -> Optional[SchemaClass]:
    """
    Get a schema by key.

    Returns:
        Schema instance or None if not found
    """
    try:
        return _schemas.get(FeatureKey(key))
    except ValueError:
        return None


def get_schema_or_raise(key: FeatureKey) -> SchemaClass:
    """
    Get a schema by key, raising if not found.

    Raises:
        SchemaNotFoundError if schema not found
    """
    schema = get_schema(key)
    if schema is None:
        raise SchemaNotFoundError(key)
    return schema


def find_by_class_code(class_code: Any) -> Optional[SchemaClass]:
    """Resolve a payload ``Class`` code (e.g. "RLE") to its schema."""
    if not isinstance(class_code, str):
        return None
    code = class_code.strip()
    if not code:
        return None
    for schema in _schemas.values():
        if schema.CLASS_CODE and schema.CLASS_CODE == code:
            return schema
    return None


def schemas_for_mode(mode: DrawMode, include_default: bool = False) -> List[SchemaClass]:
    """Schemas selectable while drawing in ``mode``, in registration order."""
    out = []
    for schema in _schemas.values():
        if schema.VALIDATION_EXEMPT and not include_default:
            continue
        if schema.supports_mode(mode):
            out.append(schema)
    return out


def list_schemas() -> List[Dict[str, Any]]:
    """
    List all registered schemas with metadata.

    Returns:
        List of schema metadata dicts
    """
    return list(_schema_metadata.values())


def clear_schemas() -> None:
    """
    Clear all registered schemas.

    Primarily for testing.
    """
    _schemas.clear()
    _schema_metadata.clear()
    logger.debug("Cleared all schemas")


def validate_registry() -> List[FeatureKey]:
    """
    Exhaustiveness check.

    Returns:
        FeatureKey members with no registered schema (empty if complete)
    """
    return [key for key in FeatureKey if key not in _schemas]


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "register_schema",
    "get_schema",
    "get_schema_or_raise",
    "find_by_class_code",
    "schemas_for_mode",
    "list_schemas",
    "clear_schemas",
    "validate_registry",
    "SchemaNotFoundError",
    "DuplicateSchemaError",
]
