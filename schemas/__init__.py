# ============================================================================
# SCHEMAS MODULE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Schemas - Package exports
# PURPOSE: Feature schema registry (fields, classes, validation)
# CREATED: 19 OCT 2026
# ============================================================================
"""
Feature Schema Registry

Importing this package registers every built-in feature class.
"""

from schemas.base import (
    BuildContext,
    HydratedForm,
    SchemaClass,
    SchemaError,
    UnknownWorldError,
)
from schemas.registry import (
    DuplicateSchemaError,
    SchemaNotFoundError,
    clear_schemas,
    find_by_class_code,
    get_schema,
    get_schema_or_raise,
    list_schemas,
    register_schema,
    schemas_for_mode,
    validate_registry,
)
from schemas.validation import format_missing_entries, validate_required
from schemas.system_fields import check_declared_system_fields, stamp_system_fields
from schemas import classes  # noqa: F401  (registers built-in classes)

__all__ = [
    # Base
    "BuildContext",
    "HydratedForm",
    "SchemaClass",
    "SchemaError",
    "UnknownWorldError",
    # Registry
    "DuplicateSchemaError",
    "SchemaNotFoundError",
    "clear_schemas",
    "find_by_class_code",
    "get_schema",
    "get_schema_or_raise",
    "list_schemas",
    "register_schema",
    "schemas_for_mode",
    "validate_registry",
    # Validation
    "format_missing_entries",
    "validate_required",
    # System fields
    "check_declared_system_fields",
    "stamp_system_fields",
]
