"""Segment predicate model: nested AND/OR/NOT groups of field rules."""

import uuid
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic import ValidationError as PydanticValidationError

from ..error_handling import SegmentValidationError, raise_validation_error
from ..fields import SegmentOperator


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


class Combinator(str, Enum):
    """Boolean join applied across a group's children."""

    AND = "and"
    OR = "or"


class SegmentRule(BaseModel):
    """A single field comparison, e.g. ``lifetimeValue >= 1000``.

    ``value`` is a scalar for most operators, a ``[min, max]`` pair for
    ``between``, a list for ``in``/``not_in`` and absent for the null checks.
    """

    kind: Literal["rule"] = "rule"
    id: str = Field(default_factory=_new_id)
    field: str
    operator: SegmentOperator
    value: Any = None
    value_type: Optional[str] = Field(default=None, alias="valueType")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class SegmentGroup(BaseModel):
    """Children joined by ``combinator``, optionally negated.

    An empty ``and`` group is true and an empty ``or`` group is false;
    ``negate`` (serialized as ``not``) is applied after combining.
    """

    kind: Literal["group"] = "group"
    id: str = Field(default_factory=_new_id)
    combinator: Combinator = Combinator.AND
    negate: bool = Field(default=False, alias="not")
    rules: List["SegmentNode"] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload in the persisted camelCase shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _node_kind(node: Any) -> Optional[str]:
    """Discriminate a rule from a group.

    Explicit ``kind`` wins; untagged JSON from the segment builder is told
    apart by its ``rules`` or ``field`` key.
    """
    if isinstance(node, dict):
        if node.get("kind") in ("rule", "group"):
            return node["kind"]
        if "rules" in node:
            return "group"
        if "field" in node:
            return "rule"
        return None
    return getattr(node, "kind", None)


SegmentNode = Annotated[
    Union[
        Annotated[SegmentRule, Tag("rule")],
        Annotated[SegmentGroup, Tag("group")],
    ],
    Discriminator(_node_kind),
]

SegmentGroup.model_rebuild()

# The root of a segment definition is an ordinary group.
SegmentQuery = SegmentGroup


def parse_segment_tree(tree: Union[SegmentGroup, Dict[str, Any]]) -> SegmentGroup:
    """Build a ``SegmentGroup`` from its JSON form.

    Structural problems (unknown operator name, bad combinator, a node that
    is neither rule nor group) raise ``SegmentValidationError``.
    """
    if isinstance(tree, SegmentGroup):
        return tree
    if not isinstance(tree, dict) or _node_kind(tree) != "group":
        raise_validation_error(
            SegmentValidationError("Segment root must be a group with a 'rules' list")
        )
    try:
        return SegmentGroup.model_validate(tree)
    except PydanticValidationError as e:
        first = e.errors()[0]
        raise_validation_error(
            SegmentValidationError(
                f"Malformed segment tree: {first['msg']}",
                path=tuple(first["loc"]),
                field_value=first.get("input"),
                error_code="malformed_tree",
            )
        )
