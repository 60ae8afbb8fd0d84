# ============================================================================
# RECORD MODEL
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Domain model - Committed layer record
# PURPOSE: Geometry + schema payload owned exclusively by the LayerStore
# CREATED: 19 OCT 2026
# ============================================================================
"""
Record Model

A record is a committed, schema-validated feature.

Lifecycle:
    1. Created by committing a draft session, or by bulk import
    2. Replaced atomically when an edit session is re-committed
       (payload, coords and color change together)
    3. Destroyed by explicit deletion

``payload`` is always the output of a schema ``build`` and is the only
part that is exported.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from core.contracts import DrawMode, FeatureKey
from core.models.geometry import WorldPoint


class Record(BaseModel):
    """Committed layer record."""

    id: int = Field(..., ge=0, description="Store-allocated id, never reused")
    mode: DrawMode = Field(..., description="Geometry kind")
    color: str = Field(default="#1e88e5", description="Display color")
    coords: List[WorldPoint] = Field(default_factory=list)
    visible: bool = Field(default=True)
    class_key: FeatureKey = Field(default=FeatureKey.DEFAULT)
    payload: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": False}

    @property
    def point_count(self) -> int:
        return len(self.coords)

    def title(self) -> str:
        """Short display title ``<class> #<id>``."""
        return f"{self.class_key.value} #{self.id}"


__all__ = ["Record"]
