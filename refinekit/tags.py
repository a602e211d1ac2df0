"""
Predicate Tags for refinekit.

A tag identifies the *shape* of a constraint. It holds no runtime state
beyond the structural data needed to recurse: sub-tag handles and
literal payloads fixed at construction time.

Tag variants (closed set):
    Atom         — Named leaf standing for a predicate family defined by a host
    Not          — Negation of a tag
    Or           — Disjunction of two tags
    And          — Conjunction of two tags
    DescribedAs  — A tag relabelled with a literal description
    StrictEqual  — Leaf testing equality with a literal value

Two tags are the same entity iff they are structurally identical:
same constructor, same arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator


# =============================================================================
# ERRORS AND LITERALS
# =============================================================================

class TagError(ValueError):
    """Raised when a tag is constructed with a malformed shape."""
    pass


# Payload types accepted by StrictEqual
LITERAL_TYPES = (bool, int, float, complex, str, bytes, type(None))


def render_literal(value: Any) -> str:
    """
    Render a literal payload the way it appears in messages.

    Booleans render in lower case ("true"/"false"); every other
    literal renders as str(value).
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# =============================================================================
# TAG BASE
# =============================================================================

class Tag:
    """
    Base class of every predicate tag.

    Python operators build combinators:
        ~c     -> Not(c)
        a | b  -> Or(a, b)
        a & b  -> And(a, b)
    """

    __slots__ = ()

    def children(self) -> tuple[Tag, ...]:
        """Direct sub-tags, left to right."""
        return ()

    def walk(self) -> Iterator[Tag]:
        """Iterate over this tag and all of its sub-tags in pre-order."""
        yield self
        for child in self.children():
            yield from child.walk()

    def size(self) -> int:
        """Number of tag nodes in this tree."""
        return sum(1 for _ in self.walk())

    def depth(self) -> int:
        """Length of the longest path from this tag to a leaf."""
        children = self.children()
        if not children:
            return 0
        return 1 + max(child.depth() for child in children)

    def render(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()

    def __invert__(self) -> Not:
        return Not(self)

    def __or__(self, other: object) -> Or:
        if not isinstance(other, Tag):
            return NotImplemented
        return Or(self, other)

    def __and__(self, other: object) -> And:
        if not isinstance(other, Tag):
            return NotImplemented
        return And(self, other)

    def described_as(self, description: str) -> DescribedAs:
        """Attach a literal description to this tag."""
        return DescribedAs(self, description)


def _require_tag(value: object, role: str) -> None:
    if not isinstance(value, Tag):
        raise TagError(
            f"{role} must be a Tag, got {type(value).__name__}"
        )


# =============================================================================
# LEAF TAGS
# =============================================================================

@dataclass(frozen=True)
class Atom(Tag):
    """
    An opaque named predicate.

    The core gives atoms no test of their own. A host binds one through
    an ImplementationRegistry, and may assert implications between atoms
    through axioms.
    """
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise TagError("Atom name must be a non-empty string")

    def render(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False)
class StrictEqual(Tag):
    """
    Leaf tag testing strict equality with a literal value.

    Equality and hashing take the literal's type into account so that
    StrictEqual(1) and StrictEqual(True) stay distinct tags.
    """
    value: Any

    def __post_init__(self):
        if not isinstance(self.value, LITERAL_TYPES):
            raise TagError(
                f"StrictEqual payload must be a literal, got {type(self.value).__name__}"
            )

    def _key(self) -> tuple:
        return (type(self.value), repr(self.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StrictEqual):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(("StrictEqual",) + self._key())

    def render(self) -> str:
        return f"StrictEqual[{render_literal(self.value)}]"


# =============================================================================
# COMBINATOR TAGS
# =============================================================================

@dataclass(frozen=True)
class Not(Tag):
    """Negation of a tag."""
    inner: Tag

    def __post_init__(self):
        _require_tag(self.inner, "Not operand")

    def children(self) -> tuple[Tag, ...]:
        return (self.inner,)

    def render(self) -> str:
        return f"!({self.inner.render()})"


@dataclass(frozen=True)
class Or(Tag):
    """Disjunction of two tags."""
    left: Tag
    right: Tag

    def __post_init__(self):
        _require_tag(self.left, "Or left operand")
        _require_tag(self.right, "Or right operand")

    def children(self) -> tuple[Tag, ...]:
        return (self.left, self.right)

    def render(self) -> str:
        return f"({self.left.render()}) || ({self.right.render()})"


@dataclass(frozen=True)
class And(Tag):
    """Conjunction of two tags."""
    left: Tag
    right: Tag

    def __post_init__(self):
        _require_tag(self.left, "And left operand")
        _require_tag(self.right, "And right operand")

    def children(self) -> tuple[Tag, ...]:
        return (self.left, self.right)

    def render(self) -> str:
        return f"({self.left.render()}) && ({self.right.render()})"


@dataclass(frozen=True)
class DescribedAs(Tag):
    """
    A tag relabelled with a literal description.

    The description replaces the inner message entirely. It never
    changes what the tag accepts.
    """
    inner: Tag
    description: str

    def __post_init__(self):
        _require_tag(self.inner, "DescribedAs operand")
        if not isinstance(self.description, str):
            raise TagError(
                f"DescribedAs description must be a str, got {type(self.description).__name__}"
            )
        if not self.description:
            raise TagError("DescribedAs description must be non-empty")

    def children(self) -> tuple[Tag, ...]:
        return (self.inner,)

    def render(self) -> str:
        return f"({self.inner.render()}) DescribedAs {self.description!r}"


# =============================================================================
# CONSTRUCTOR ALIASES
# =============================================================================

def atom(name: str) -> Atom:
    return Atom(name)


def not_(inner: Tag) -> Not:
    return Not(inner)


def or_(left: Tag, right: Tag) -> Or:
    return Or(left, right)


def and_(left: Tag, right: Tag) -> And:
    return And(left, right)


def described_as(inner: Tag, description: str) -> DescribedAs:
    return DescribedAs(inner, description)


def strict_equal(value: Any) -> StrictEqual:
    return StrictEqual(value)


def is_double_negation(tag: Tag) -> bool:
    """True for tags of the shape Not(Not(c))."""
    return isinstance(tag, Not) and isinstance(tag.inner, Not)
