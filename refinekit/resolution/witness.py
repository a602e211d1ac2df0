"""
Goals, witnesses and derivations.

Goal         — "does premise imply conclusion, for values of value_type?"
Implication  — opaque witness that a goal holds; its existence is the contract
Derivation   — the single proof path the engine found for a goal

A witness carries no proof data. It can only be issued by the resolution
engine, which builds it from rules whose soundness holds by construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Iterator, Optional

from ..tags import Tag, TagError

if TYPE_CHECKING:
    from .rules import Rule


# =============================================================================
# GOAL
# =============================================================================

@dataclass(frozen=True)
class Goal:
    """An implication to be proved: premise ==> conclusion over value_type."""
    premise: Tag
    conclusion: Tag
    value_type: type = object

    def __post_init__(self):
        if not isinstance(self.premise, Tag):
            raise TagError(f"Goal premise must be a Tag, got {type(self.premise).__name__}")
        if not isinstance(self.conclusion, Tag):
            raise TagError(f"Goal conclusion must be a Tag, got {type(self.conclusion).__name__}")
        if not isinstance(self.value_type, type):
            raise TypeError(f"Goal value_type must be a type, got {self.value_type!r}")

    def with_premise(self, premise: Tag) -> Goal:
        return replace(self, premise=premise)

    def with_conclusion(self, conclusion: Tag) -> Goal:
        return replace(self, conclusion=conclusion)

    def render(self) -> str:
        return f"{self.premise.render()} ==> {self.conclusion.render()}"

    def __str__(self) -> str:
        return self.render()


# =============================================================================
# WITNESS
# =============================================================================

_ISSUER_TOKEN = object()


class Implication:
    """
    Opaque witness that a goal holds.

    Exposes the goal it certifies and nothing else.
    """

    __slots__ = ("_goal",)

    def __init__(self, goal: Goal, _token: object = None):
        if _token is not _ISSUER_TOKEN:
            raise TypeError("Implication witnesses are issued by a ResolutionEngine")
        object.__setattr__(self, "_goal", goal)

    def __setattr__(self, name, value):
        raise AttributeError("Implication witnesses are immutable")

    @property
    def goal(self) -> Goal:
        return self._goal

    @property
    def premise(self) -> Tag:
        return self._goal.premise

    @property
    def conclusion(self) -> Tag:
        return self._goal.conclusion

    @property
    def value_type(self) -> type:
        return self._goal.value_type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Implication):
            return NotImplemented
        return self._goal == other._goal

    def __hash__(self) -> int:
        return hash(("Implication", self._goal))

    def __repr__(self) -> str:
        return f"Implication({self._goal.render()})"


def issue_witness(goal: Goal) -> Implication:
    """Manufacture a witness. Only the resolution engine calls this."""
    return Implication(goal, _ISSUER_TOKEN)


# =============================================================================
# DERIVATION
# =============================================================================

@dataclass(frozen=True)
class Derivation:
    """
    A proof path: the rule applied to a goal and the proofs of its premises.

    Every node is a rule instance; leaves are reflexivity or axioms.
    """
    rule: Rule
    goal: Goal
    premises: tuple[Derivation, ...] = field(default_factory=tuple)
    label: Optional[str] = None

    def walk(self) -> Iterator[Derivation]:
        yield self
        for premise in self.premises:
            yield from premise.walk()

    def rules_used(self) -> list[Rule]:
        """Rules in pre-order."""
        return [node.rule for node in self.walk()]

    def depth(self) -> int:
        if not self.premises:
            return 0
        return 1 + max(premise.depth() for premise in self.premises)

    def explain(self, indent: int = 0) -> str:
        """Render the proof as an indented tree, one goal per line."""
        name = self.label or self.rule.value
        lines = [f"{'  ' * indent}{self.goal.render()}   [{name}]"]
        for premise in self.premises:
            lines.append(premise.explain(indent + 1))
        return "\n".join(lines)
