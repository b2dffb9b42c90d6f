from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

# mapper(data, row, materializer, column) -> entity
Mapper = Callable[..., Dict[str, Any]]


class EntityMetadata(BaseModel):
    """
    Registry entry for one entity type.

    `token` is the node name used as the type's column alias in queries
    (e.g. "stripePrice"); `label` is its graph label (e.g. "StripePrice").
    Child lists hold tokens of other registered types; dynamic patterns use
    the `{parent}` and `{*}` placeholders.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    token: str
    label: str
    mapper: Mapper

    single_children: List[str] = []
    many_children: List[str] = []
    dynamic_single_child_patterns: List[str] = []
    dynamic_many_child_patterns: List[str] = []

    @field_validator("token", "label")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v


@dataclass(frozen=True)
class PatternMatch:
    column: str
    segment: str
    metadata: Optional[EntityMetadata] = None
