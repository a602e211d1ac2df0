"""
Predicate Implementations for refinekit.

An Implementation binds a (value type, tag) pair to a runtime test and a
human-readable message. Combinator implementations are built from the
implementations of their sub-tags, recursively, bottoming out at leaves:
StrictEqual (primitive) and Atom (host-registered).

Contract:
    - At most one implementation is resolvable per (tag, value type)
    - test(value) is pure, deterministic, total, and returns a bool
    - message() is non-empty, even for vacuous or tautological predicates
    - Malformed or unresolvable tags fail at resolution time, never in test()
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .tags import (
    And,
    Atom,
    DescribedAs,
    Not,
    Or,
    StrictEqual,
    Tag,
    render_literal,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS AND ERRORS
# =============================================================================

DEFAULT_VALUE_TYPE: type = object

STRICT_EQUAL_PREFIX = "Should strictly equal to "


class ImplementationError(LookupError):
    """Raised when no implementation can be resolved for a tag."""

    def __init__(self, tag: Tag, value_type: type, reason: str):
        self.tag = tag
        self.value_type = value_type
        self.reason = reason
        super().__init__(
            f"No implementation of {tag.render()} for {value_type.__name__}: {reason}"
        )


# =============================================================================
# IMPLEMENTATION PROTOCOL
# =============================================================================

@dataclass(frozen=True)
class Implementation(ABC):
    """
    Runtime test and message for one (value type, tag) pair.

    Instances are immutable and reusable across all values of the type.
    """
    tag: Tag
    value_type: type

    @abstractmethod
    def test(self, value: Any) -> bool:
        ...

    @abstractmethod
    def message(self) -> str:
        ...


@dataclass(frozen=True)
class StrictEqualImplementation(Implementation):
    """Primitive leaf: value == literal."""

    def test(self, value: Any) -> bool:
        return bool(value == self.tag.value)

    def message(self) -> str:
        return STRICT_EQUAL_PREFIX + render_literal(self.tag.value)


@dataclass(frozen=True)
class PredicateImplementation(Implementation):
    """
    Leaf backed by a host-registered predicate for an Atom.

    A predicate that raises on a value is treated as not holding for it,
    so test() stays total over any value handed to it.
    """
    predicate: Callable[[Any], bool]
    description: str

    def test(self, value: Any) -> bool:
        try:
            return bool(self.predicate(value))
        except Exception:
            logger.debug("Predicate %s raised on %r", self.tag.render(), value, exc_info=True)
            return False

    def message(self) -> str:
        return self.description


@dataclass(frozen=True)
class NotImplementation(Implementation):
    inner: Implementation

    def test(self, value: Any) -> bool:
        return not self.inner.test(value)

    def message(self) -> str:
        return "!(" + self.inner.message() + ")"


@dataclass(frozen=True)
class OrImplementation(Implementation):
    """Left-to-right short-circuit: the right side is skipped when the left holds."""
    left: Implementation
    right: Implementation

    def test(self, value: Any) -> bool:
        return self.left.test(value) or self.right.test(value)

    def message(self) -> str:
        return "(" + self.left.message() + ") || (" + self.right.message() + ")"


@dataclass(frozen=True)
class AndImplementation(Implementation):
    """Left-to-right short-circuit: the right side is skipped when the left fails."""
    left: Implementation
    right: Implementation

    def test(self, value: Any) -> bool:
        return self.left.test(value) and self.right.test(value)

    def message(self) -> str:
        return "(" + self.left.message() + ") && (" + self.right.message() + ")"


@dataclass(frozen=True)
class DescribedAsImplementation(Implementation):
    """Delegates the test; the message is the attached description, verbatim."""
    inner: Implementation

    def test(self, value: Any) -> bool:
        return self.inner.test(value)

    def message(self) -> str:
        return self.tag.description


# =============================================================================
# REGISTRY
# =============================================================================

@dataclass(frozen=True)
class AtomPredicate:
    """A host-supplied test and message for an Atom over a value type."""
    atom: Atom
    value_type: type
    test: Callable[[Any], bool]
    message: str


class ImplementationRegistry:
    """
    Binds Atom tags to host predicates and resolves implementations.

    Lookup walks the requested value type's MRO, so a predicate
    registered for a base class serves its subclasses; ABCs the type is
    only registered with are consulted after that. Resolved
    implementations are memoised per (tag, value type); registering a
    new predicate drops the memo.
    """

    def __init__(self):
        self._predicates: dict[tuple[Atom, type], AtomPredicate] = {}
        self._resolved: dict[tuple[Tag, type], Implementation] = {}

    def __len__(self) -> int:
        return len(self._predicates)

    def __contains__(self, key: tuple[Atom, type]) -> bool:
        return key in self._predicates

    def register(
        self,
        atom: Atom,
        value_type: type,
        test: Callable[[Any], bool],
        message: str,
    ) -> AtomPredicate:
        """
        Register the predicate for an atom over a value type.

        Raises:
            ImplementationError: If the pair is already registered, or
                the message is empty
        """
        if not isinstance(atom, Atom):
            raise TypeError(f"Only Atom tags can be registered, got {type(atom).__name__}")
        if not isinstance(value_type, type):
            raise TypeError(f"value_type must be a type, got {value_type!r}")
        if not callable(test):
            raise TypeError("test must be callable")
        if not message:
            raise ImplementationError(atom, value_type, "message must be non-empty")
        key = (atom, value_type)
        if key in self._predicates:
            raise ImplementationError(atom, value_type, "already registered")

        entry = AtomPredicate(atom=atom, value_type=value_type, test=test, message=message)
        self._predicates[key] = entry
        self._resolved.clear()
        logger.debug("Registered predicate %s for %s", atom.render(), value_type.__name__)
        return entry

    def lookup(self, atom: Atom, value_type: type) -> Optional[AtomPredicate]:
        """
        Find the most specific predicate for atom over value_type.

        Real bases in the MRO are tried first, nearest first. Failing
        those, a predicate registered for an ABC that value_type is a
        virtual subclass of (int under numbers.Number) is used, the most
        specific such ABC first.

        Raises:
            ImplementationError: If several unrelated virtual bases carry
                a predicate for the atom and none is in the MRO
        """
        for klass in value_type.__mro__:
            entry = self._predicates.get((atom, klass))
            if entry is not None:
                return entry

        candidates = [
            entry
            for (registered, klass), entry in self._predicates.items()
            if registered == atom and issubclass(value_type, klass)
        ]
        virtual = [
            entry
            for entry in candidates
            if not any(
                other.value_type is not entry.value_type
                and issubclass(other.value_type, entry.value_type)
                for other in candidates
            )
        ]
        if len(virtual) > 1:
            names = ", ".join(sorted(entry.value_type.__name__ for entry in virtual))
            raise ImplementationError(atom, value_type, f"ambiguous registrations: {names}")
        return virtual[0] if virtual else None

    def resolve(self, tag: Tag, value_type: type = DEFAULT_VALUE_TYPE) -> Implementation:
        """
        Resolve the implementation of tag for value_type.

        Raises:
            ImplementationError: If any leaf of the tag has no implementation
        """
        if not isinstance(tag, Tag):
            raise TypeError(f"Expected a Tag, got {type(tag).__name__}")
        if not isinstance(value_type, type):
            raise TypeError(f"value_type must be a type, got {value_type!r}")

        key = (tag, value_type)
        cached = self._resolved.get(key)
        if cached is not None:
            return cached

        implementation = self._build(tag, value_type)
        self._resolved[key] = implementation
        return implementation

    def _build(self, tag: Tag, value_type: type) -> Implementation:
        if isinstance(tag, StrictEqual):
            if not isinstance(tag.value, value_type):
                raise ImplementationError(
                    tag,
                    value_type,
                    f"literal {tag.value!r} is not a {value_type.__name__}",
                )
            return StrictEqualImplementation(tag, value_type)

        if isinstance(tag, Atom):
            entry = self.lookup(tag, value_type)
            if entry is None:
                raise ImplementationError(tag, value_type, "no predicate registered")
            return PredicateImplementation(tag, value_type, entry.test, entry.message)

        if isinstance(tag, Not):
            return NotImplementation(tag, value_type, self.resolve(tag.inner, value_type))

        if isinstance(tag, Or):
            return OrImplementation(
                tag,
                value_type,
                self.resolve(tag.left, value_type),
                self.resolve(tag.right, value_type),
            )

        if isinstance(tag, And):
            return AndImplementation(
                tag,
                value_type,
                self.resolve(tag.left, value_type),
                self.resolve(tag.right, value_type),
            )

        if isinstance(tag, DescribedAs):
            return DescribedAsImplementation(tag, value_type, self.resolve(tag.inner, value_type))

        raise ImplementationError(tag, value_type, f"unknown tag shape {type(tag).__name__}")


DEFAULT_REGISTRY = ImplementationRegistry()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def resolve_implementation(
    tag: Tag,
    value_type: type = DEFAULT_VALUE_TYPE,
    registry: Optional[ImplementationRegistry] = None,
) -> Implementation:
    """Resolve an implementation, using the shared registry by default."""
    if registry is None:
        registry = DEFAULT_REGISTRY
    return registry.resolve(tag, value_type)


def check(
    tag: Tag,
    value: Any,
    value_type: Optional[type] = None,
    registry: Optional[ImplementationRegistry] = None,
) -> bool:
    """
    Test a value against a tag.

    When value_type is omitted the value's own type is used.
    """
    if value_type is None:
        value_type = type(value)
    return resolve_implementation(tag, value_type, registry).test(value)


def describe(
    tag: Tag,
    value_type: type = DEFAULT_VALUE_TYPE,
    registry: Optional[ImplementationRegistry] = None,
) -> str:
    """The failure message of a tag."""
    return resolve_implementation(tag, value_type, registry).message()
