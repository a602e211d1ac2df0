"""
Operator aliases for refinekit.

"not", "or" and "and" mean two different things depending on the
operands: plain boolean logic, or construction of a combinator tag.
Rather than guessing from the operand's shape, the two meanings live in
separate, explicitly named operation sets. Callers pick one.

    BOOLEAN_OPS.or_(True, False)      -> True
    TAG_OPS.or_(positive, zero)       -> Or(positive, zero)
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from .tags import And, Not, Or, Tag, TagError


# =============================================================================
# BOOLEAN OPERATIONS
# =============================================================================

def _require_bool(value: object) -> None:
    if not isinstance(value, bool):
        raise TypeError(f"Boolean operator expects bool, got {type(value).__name__}")


def bool_not(value: bool) -> bool:
    _require_bool(value)
    return not value


def bool_or(left: bool, right: bool) -> bool:
    _require_bool(left)
    _require_bool(right)
    return left or right


def bool_and(left: bool, right: bool) -> bool:
    _require_bool(left)
    _require_bool(right)
    return left and right


# =============================================================================
# TAG OPERATIONS
# =============================================================================

def _require_tag(value: object) -> None:
    if not isinstance(value, Tag):
        raise TagError(f"Tag operator expects a Tag, got {type(value).__name__}")


def tag_not(inner: Tag) -> Not:
    _require_tag(inner)
    return Not(inner)


def tag_or(left: Tag, right: Tag) -> Or:
    _require_tag(left)
    _require_tag(right)
    return Or(left, right)


def tag_and(left: Tag, right: Tag) -> And:
    _require_tag(left)
    _require_tag(right)
    return And(left, right)


# =============================================================================
# OPERATOR SETS
# =============================================================================

class OperatorSet(NamedTuple):
    """A named triple of not/or/and operations."""
    name: str
    not_: Callable
    or_: Callable
    and_: Callable


BOOLEAN_OPS = OperatorSet("boolean", bool_not, bool_or, bool_and)
TAG_OPS = OperatorSet("tag", tag_not, tag_or, tag_and)
