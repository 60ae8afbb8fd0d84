# ============================================================================
# FIELD & GROUP DEFINITIONS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Schemas - Declarative form field variants
# PURPOSE: Tagged-union field defs with coerce / blank / hydrate behaviour
# CREATED: 19 OCT 2026
# ============================================================================
"""
Field & Group Definitions

A form field is one of four variants, discriminated on ``type``:

    TextField    pass-through
    NumberField  numeric strings parse, junk becomes NaN, integral -> int
    BoolField    truthiness ("false", "0", "no" and "" are false)
    SelectField  raw value matched to an option value by its text form

Every variant answers three questions polymorphically:

    coerce(raw)    form value -> payload value   (build)
    is_blank(raw)  does this count as "not filled in"   (required check)
    hydrate(value) payload value -> form value   (edit / import)

Groups are repeatable sub-records. Two universal groups, ``tags`` and
``extensions``, serialize to mappings instead of item lists and carry
their own normalization rules.
"""

import math
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from core.contracts import FieldType
from core.models.geometry import is_numeric
from core.models.validation import MissingEntry, StructuralError


def is_blank_value(raw: Any) -> bool:
    """None or a whitespace-only string."""
    if raw is None:
        return True
    return isinstance(raw, str) and raw.strip() == ""


def is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def to_number(raw: Any) -> float:
    """
    Numeric conversion with ``Number()`` semantics.

    Booleans map to 1/0, numeric strings parse, everything else (and any
    non-finite result) is NaN. Integral results come back as ``int``.
    """
    if isinstance(raw, bool):
        return 1 if raw else 0
    if is_numeric(raw):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return 0
        try:
            value = float(text)
        except ValueError:
            return math.nan
    else:
        return math.nan

    if not math.isfinite(value):
        return math.nan
    if value.is_integer():
        return int(value)
    return value


def to_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() not in ("", "false", "0", "no")
    return bool(raw)


# ============================================================================
# FIELD VARIANTS
# ============================================================================

class BaseField(BaseModel):
    """Common field attributes."""

    key: str = Field(..., description="Payload / form key")
    label: str = Field(default="", description="Display label")
    optional: bool = Field(default=False)
    default: Any = Field(default=None, description="Form value when the payload has none")

    model_config = {"frozen": True}

    @property
    def display_label(self) -> str:
        return self.label or self.key

    def is_blank(self, raw: Any) -> bool:
        return is_blank_value(raw)

    def coerce(self, raw: Any) -> Any:
        return raw

    def form_default(self) -> Any:
        return "" if self.default is None else self.default

    def hydrate(self, value: Any) -> Any:
        if value is None:
            return self.form_default()
        return value

    def type_error(self, value: Any) -> Optional[str]:
        """Message when ``value`` cannot be this field's type, else None."""
        if not is_primitive(value):
            return f"{self.key} must be a primitive value"
        return None


class TextField(BaseField):
    type: Literal["text"] = "text"


class NumberField(BaseField):
    type: Literal["number"] = "number"

    def is_blank(self, raw: Any) -> bool:
        if is_blank_value(raw):
            return True
        value = self.coerce(raw)
        return isinstance(value, float) and math.isnan(value)

    def coerce(self, raw: Any) -> Any:
        return to_number(raw)

    def type_error(self, value: Any) -> Optional[str]:
        error = super().type_error(value)
        if error:
            return error
        if not is_blank_value(value) and self.is_blank(value):
            return f"{self.key} must be a number"
        return None


class BoolField(BaseField):
    """
    Checkbox field. No built-in class declares one; it serves class
    definitions loaded through ``parse_field_def``.
    """
    type: Literal["bool"] = "bool"

    def coerce(self, raw: Any) -> Any:
        return to_bool(raw)

    def form_default(self) -> Any:
        return False if self.default is None else self.default

    def hydrate(self, value: Any) -> Any:
        if value is None:
            return self.form_default()
        return to_bool(value)


class SelectOption(BaseModel):
    label: str
    value: Any

    model_config = {"frozen": True}


def _option_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class SelectField(BaseField):
    type: Literal["select"] = "select"
    options: List[SelectOption] = Field(default_factory=list)

    def match(self, raw: Any) -> Optional[SelectOption]:
        text = _option_text(raw)
        for option in self.options:
            if option.value == raw and type(option.value) is type(raw):
                return option
        for option in self.options:
            if _option_text(option.value) == text:
                return option
        return None

    def coerce(self, raw: Any) -> Any:
        option = self.match(raw)
        return option.value if option is not None else raw

    def hydrate(self, value: Any) -> Any:
        if value is None:
            return self.form_default()
        return self.coerce(value)

    def type_error(self, value: Any) -> Optional[str]:
        error = super().type_error(value)
        if error:
            return error
        if not is_blank_value(value) and self.options and self.match(value) is None:
            allowed = ", ".join(_option_text(o.value) for o in self.options)
            return f"{self.key} must be one of: {allowed}"
        return None


FieldDef = Annotated[
    Union[TextField, NumberField, BoolField, SelectField],
    Field(discriminator="type"),
]

_FIELD_ADAPTER = TypeAdapter(FieldDef)


def parse_field_def(data: Dict[str, Any]) -> BaseField:
    """Build a field variant from a plain mapping (``{"type": "number", ...}``)."""
    return _FIELD_ADAPTER.validate_python(data)


def field_type_of(field_def: BaseField) -> FieldType:
    return FieldType(field_def.type)


def project_fields(values: Dict[str, Any], fields: List[BaseField]) -> Dict[str, Any]:
    """
    Project form values onto declared fields.

    Blank optional fields are dropped; blank required fields are kept as
    ``None`` so the output shows exactly what is missing.
    """
    out: Dict[str, Any] = {}
    for f in fields:
        raw = values.get(f.key)
        if f.is_blank(raw):
            if not f.optional:
                out[f.key] = None
            continue
        out[f.key] = f.coerce(raw)
    return out


# ============================================================================
# GROUPS
# ============================================================================

class GroupDef(BaseModel):
    """
    Repeatable sub-record.

    Serialized as an ordered list of item objects under ``key``.
    """

    key: str
    label: str = ""
    optional: bool = True
    min_items: int = Field(default=0, ge=0)
    fields: List[FieldDef] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def display_label(self) -> str:
        return self.label or self.key

    def empty_item(self) -> Dict[str, Any]:
        return {f.key: f.form_default() for f in self.fields}

    def serialize(self, items: List[Dict[str, Any]]) -> Any:
        return [project_fields(item, self.fields) for item in items]

    def has_content(self, serialized: Any) -> bool:
        """Whether the serialized value is emitted into the payload."""
        return True

    def hydrate_items(self, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, list):
            return []
        out = []
        for item in value:
            item = item if isinstance(item, dict) else {}
            out.append({f.key: f.hydrate(item.get(f.key)) for f in self.fields})
        return out

    def normalize(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [dict(item) for item in items]

    def extra_missing(self, item: Dict[str, Any], index: int) -> List[MissingEntry]:
        """Item-level rules beyond per-field required checks."""
        return []

    def structural_errors(self, value: Any, item_index: Optional[int] = None) -> List[StructuralError]:
        if value is None:
            return []
        if not isinstance(value, list):
            return [StructuralError(f"{self.key} must be an array", item_index)]
        errors = []
        for i, item in enumerate(value):
            if not isinstance(item, dict):
                errors.append(StructuralError(f"{self.key}[{i}] must be an object", item_index))
                continue
            for f in self.fields:
                if f.key in item:
                    message = f.type_error(item[f.key])
                    if message:
                        errors.append(StructuralError(f"{self.key}[{i}].{message}", item_index))
        return errors


TAG_KEY_OTHER = "other"
TAG_KEY_OPTIONS = ("Kind", "SKind", "SKind2", "level", "operator", "note", TAG_KEY_OTHER)

EXT_TYPE_TEXT = "text"
EXT_TYPE_NUMBER = "number"
EXT_TYPE_BOOL = "bool"
EXT_TYPE_NULL = "null"


class TagsGroupDef(GroupDef):
    """
    Flat primitive key/value pairs, serialized as ``{key: value}``.

    A key outside TAG_KEY_OPTIONS is carried as ``tagKey="other"`` plus
    the free-text override ``tagKeyOther``.
    """

    def serialize(self, items: List[Dict[str, Any]]) -> Any:
        out: Dict[str, Any] = {}
        for item in items:
            key = self._resolved_key(item)
            if not key:
                continue
            value = item.get("tagValue")
            out[key] = "" if value is None else value
        return out

    def has_content(self, serialized: Any) -> bool:
        return bool(serialized)

    @staticmethod
    def _resolved_key(item: Dict[str, Any]) -> str:
        key = str(item.get("tagKey") or "").strip()
        if key == TAG_KEY_OTHER:
            return str(item.get("tagKeyOther") or "").strip()
        return key

    def hydrate_items(self, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, dict):
            return []
        out = []
        for key, v in value.items():
            if key in TAG_KEY_OPTIONS and key != TAG_KEY_OTHER:
                out.append({"tagKey": key, "tagKeyOther": "", "tagValue": v})
            else:
                out.append({"tagKey": TAG_KEY_OTHER, "tagKeyOther": key, "tagValue": v})
        return out

    def normalize(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        out = []
        for item in items:
            item = dict(item)
            raw_key = str(item.get("tagKey") or "").strip()
            if raw_key == TAG_KEY_OTHER:
                item["tagKeyOther"] = str(item.get("tagKeyOther") or "").strip()
            elif raw_key and raw_key not in TAG_KEY_OPTIONS:
                item["tagKey"] = TAG_KEY_OTHER
                item["tagKeyOther"] = raw_key
            else:
                item["tagKeyOther"] = ""
            out.append(item)
        return out

    def extra_missing(self, item: Dict[str, Any], index: int) -> List[MissingEntry]:
        if str(item.get("tagKey") or "").strip() != TAG_KEY_OTHER:
            return []
        if not is_blank_value(item.get("tagKeyOther")):
            return []
        return [MissingEntry(
            scope="group_field",
            label=self.display_label,
            field_key="tagKeyOther",
            group_key=self.key,
            item_index=index,
        )]

    def structural_errors(self, value: Any, item_index: Optional[int] = None) -> List[StructuralError]:
        if value is None:
            return []
        if not isinstance(value, dict):
            return [StructuralError("tags must be an object of primitive values", item_index)]
        return [
            StructuralError(f"tags.{k} must be a primitive value", item_index)
            for k, v in value.items()
            if not is_primitive(v)
        ]


class ExtensionsGroupDef(GroupDef):
    """
    Namespaced primitive values, serialized as ``{group: {key: value}}``.

    ``extType`` decides how ``extValue`` is written; ``null`` discards it.
    """

    def serialize(self, items: List[Dict[str, Any]]) -> Any:
        out: Dict[str, Dict[str, Any]] = {}
        for item in items:
            group = str(item.get("extGroup") or "").strip()
            key = str(item.get("extKey") or "").strip()
            if not group or not key:
                continue
            out.setdefault(group, {})[key] = self._typed_value(item)
        return out

    def has_content(self, serialized: Any) -> bool:
        return bool(serialized)

    @staticmethod
    def _typed_value(item: Dict[str, Any]) -> Any:
        ext_type = item.get("extType") or EXT_TYPE_TEXT
        raw = item.get("extValue")
        if ext_type == EXT_TYPE_NULL:
            return None
        if ext_type == EXT_TYPE_BOOL:
            return to_bool(raw)
        if ext_type == EXT_TYPE_NUMBER:
            if is_blank_value(raw):
                return None
            value = to_number(raw)
            return None if isinstance(value, float) and math.isnan(value) else value
        return "" if raw is None else str(raw)

    def hydrate_items(self, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, dict):
            return []
        out = []
        for group, inner in value.items():
            if not isinstance(inner, dict):
                continue
            for key, v in inner.items():
                if v is None:
                    ext_type, ext_value = EXT_TYPE_NULL, ""
                elif isinstance(v, bool):
                    ext_type, ext_value = EXT_TYPE_BOOL, v
                elif is_numeric(v):
                    ext_type, ext_value = EXT_TYPE_NUMBER, v
                else:
                    ext_type, ext_value = EXT_TYPE_TEXT, v
                out.append({
                    "extGroup": group,
                    "extKey": key,
                    "extType": ext_type,
                    "extValue": ext_value,
                })
        return out

    def normalize(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        out = []
        for item in items:
            item = dict(item)
            item["extType"] = item.get("extType") or EXT_TYPE_TEXT
            if item["extType"] == EXT_TYPE_NULL:
                item["extValue"] = ""
            elif item.get("extValue") is None:
                item["extValue"] = ""
            out.append(item)
        return out

    def structural_errors(self, value: Any, item_index: Optional[int] = None) -> List[StructuralError]:
        if value is None:
            return []
        if not isinstance(value, dict):
            return [StructuralError("extensions must be an object of objects", item_index)]
        errors = []
        for group, inner in value.items():
            if not isinstance(inner, dict):
                errors.append(StructuralError(f"extensions.{group} must be an object", item_index))
                continue
            for k, v in inner.items():
                if not is_primitive(v):
                    errors.append(
                        StructuralError(f"extensions.{group}.{k} must be a primitive value", item_index)
                    )
        return errors


def _universal_groups() -> List[GroupDef]:
    tags = TagsGroupDef(
        key="tags",
        label="Tags",
        optional=True,
        fields=[
            SelectField(
                key="tagKey",
                label="Tag key",
                options=[SelectOption(label=k, value=k) for k in TAG_KEY_OPTIONS],
            ),
            TextField(key="tagKeyOther", label="Custom tag key", optional=True),
            TextField(key="tagValue", label="Tag value"),
        ],
    )
    extensions = ExtensionsGroupDef(
        key="extensions",
        label="Extensions",
        optional=True,
        fields=[
            TextField(key="extGroup", label="Namespace"),
            TextField(key="extKey", label="Key"),
            SelectField(
                key="extType",
                label="Value type",
                default=EXT_TYPE_TEXT,
                options=[
                    SelectOption(label=t, value=t)
                    for t in (EXT_TYPE_TEXT, EXT_TYPE_NUMBER, EXT_TYPE_BOOL, EXT_TYPE_NULL)
                ],
            ),
            TextField(key="extValue", label="Value", optional=True),
        ],
    )
    return [tags, extensions]


UNIVERSAL_GROUPS: List[GroupDef] = _universal_groups()


__all__ = [
    "BaseField",
    "TextField",
    "NumberField",
    "BoolField",
    "SelectField",
    "SelectOption",
    "FieldDef",
    "GroupDef",
    "TagsGroupDef",
    "ExtensionsGroupDef",
    "UNIVERSAL_GROUPS",
    "TAG_KEY_OTHER",
    "TAG_KEY_OPTIONS",
    "EXT_TYPE_TEXT",
    "EXT_TYPE_NUMBER",
    "EXT_TYPE_BOOL",
    "EXT_TYPE_NULL",
    "is_blank_value",
    "is_primitive",
    "to_number",
    "to_bool",
    "parse_field_def",
    "field_type_of",
    "project_fields",
]
