"""
Derivation Rule Set for refinekit.

The fixed inference rules from which implication witnesses are built.
Each rule, given a goal, yields the rule applications that could prove
it. An application lists its premises; every premise must hold, and a
premise holds when any one of its alternative sub-goals holds.

Rules (C ==> D reads "C implies D"):
    REFLEXIVITY                 C ==> C
    DESCRIBED_PREMISE           (C1 DescribedAs V) ==> C2     if C1 ==> C2
    DESCRIBED_CONCLUSION        C1 ==> (C2 DescribedAs V)     if C1 ==> C2
    DOUBLE_NEGATION_PREMISE     !!C1 ==> C2                   if C1 ==> C2
    DOUBLE_NEGATION_CONCLUSION  C1 ==> !!C2                   if C1 ==> C2
    OR_INTRODUCTION             C1 ==> (C2 || C3)             if C1 ==> C2  or  C1 ==> C3
    OR_ELIMINATION              (C1 || C2) ==> C3             if C1 ==> C3  and C2 ==> C3
    AND_ELIMINATION             (C1 && C2) ==> C3             if C1 ==> C3  or  C2 ==> C3
    AXIOM                       P ==> C                       if P ==> Q is an axiom and Q ==> C

There is no AND_INTRODUCTION: a conjunction can be consumed
as a premise but never synthesised as a conclusion. StrictEqual has no
rules of its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional

from ..tags import And, DescribedAs, Or, Tag, TagError, is_double_negation
from .witness import Goal


# =============================================================================
# RULES AND PRECEDENCE
# =============================================================================

class Rule(Enum):
    """The closed set of inference rules."""
    REFLEXIVITY = "reflexivity"
    DESCRIBED_PREMISE = "described_premise"
    DESCRIBED_CONCLUSION = "described_conclusion"
    DOUBLE_NEGATION_PREMISE = "double_negation_premise"
    DOUBLE_NEGATION_CONCLUSION = "double_negation_conclusion"
    OR_INTRODUCTION = "or_introduction"
    OR_ELIMINATION = "or_elimination"
    AND_ELIMINATION = "and_elimination"
    AXIOM = "axiom"


# Lower tiers are tried first. Reflexivity terminates recursion before
# any structural decomposition is attempted.
TIER_REFLEXIVE = 0
TIER_TRANSPARENT = 1
TIER_LOGICAL = 2
TIER_AXIOM = 3

RULE_TIERS = {
    Rule.REFLEXIVITY: TIER_REFLEXIVE,
    Rule.DESCRIBED_PREMISE: TIER_TRANSPARENT,
    Rule.DESCRIBED_CONCLUSION: TIER_TRANSPARENT,
    Rule.DOUBLE_NEGATION_PREMISE: TIER_TRANSPARENT,
    Rule.DOUBLE_NEGATION_CONCLUSION: TIER_TRANSPARENT,
    Rule.OR_INTRODUCTION: TIER_LOGICAL,
    Rule.OR_ELIMINATION: TIER_LOGICAL,
    Rule.AND_ELIMINATION: TIER_LOGICAL,
    Rule.AXIOM: TIER_AXIOM,
}


# =============================================================================
# RULE APPLICATIONS
# =============================================================================

@dataclass(frozen=True)
class Premise:
    """A premise that holds when any one of its alternatives holds."""
    alternatives: tuple[Goal, ...]

    @classmethod
    def single(cls, goal: Goal) -> Premise:
        return cls((goal,))

    @classmethod
    def either(cls, first: Goal, second: Goal) -> Premise:
        return cls((first, second))


@dataclass(frozen=True)
class RuleApplication:
    """A rule instantiated on a goal, with the premises it needs."""
    rule: Rule
    goal: Goal
    premises: tuple[Premise, ...] = field(default_factory=tuple)
    label: Optional[str] = None

    @property
    def tier(self) -> int:
        return RULE_TIERS[self.rule]

    def describe(self) -> str:
        return self.label or self.rule.value


# =============================================================================
# AXIOMS
# =============================================================================

@dataclass(frozen=True)
class Axiom:
    """
    A host-asserted implication between tags.

    Predicate families outside the core (numeric ranges, string shapes...)
    contribute their implications as axioms. The core trusts them: their
    soundness is the contributor's responsibility. An axiom applies to
    goals whose value type is a subclass of its own.
    """
    premise: Tag
    conclusion: Tag
    value_type: type = object
    name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.premise, Tag) or not isinstance(self.conclusion, Tag):
            raise TagError("Axiom premise and conclusion must be Tags")
        if not isinstance(self.value_type, type):
            raise TypeError(f"Axiom value_type must be a type, got {self.value_type!r}")

    def applies_to(self, goal: Goal) -> bool:
        return goal.premise == self.premise and issubclass(goal.value_type, self.value_type)

    def describe(self) -> str:
        if self.name:
            return f"axiom {self.name}"
        return f"axiom {self.premise.render()} ==> {self.conclusion.render()}"


# =============================================================================
# CORE RULES
# =============================================================================

def reflexivity(goal: Goal) -> Iterator[RuleApplication]:
    if goal.premise == goal.conclusion:
        yield RuleApplication(Rule.REFLEXIVITY, goal)


def described_premise(goal: Goal) -> Iterator[RuleApplication]:
    premise = goal.premise
    if isinstance(premise, DescribedAs):
        yield RuleApplication(
            Rule.DESCRIBED_PREMISE,
            goal,
            (Premise.single(goal.with_premise(premise.inner)),),
        )


def described_conclusion(goal: Goal) -> Iterator[RuleApplication]:
    conclusion = goal.conclusion
    if isinstance(conclusion, DescribedAs):
        yield RuleApplication(
            Rule.DESCRIBED_CONCLUSION,
            goal,
            (Premise.single(goal.with_conclusion(conclusion.inner)),),
        )


def double_negation_premise(goal: Goal) -> Iterator[RuleApplication]:
    if is_double_negation(goal.premise):
        yield RuleApplication(
            Rule.DOUBLE_NEGATION_PREMISE,
            goal,
            (Premise.single(goal.with_premise(goal.premise.inner.inner)),),
        )


def double_negation_conclusion(goal: Goal) -> Iterator[RuleApplication]:
    if is_double_negation(goal.conclusion):
        yield RuleApplication(
            Rule.DOUBLE_NEGATION_CONCLUSION,
            goal,
            (Premise.single(goal.with_conclusion(goal.conclusion.inner.inner)),),
        )


def or_introduction(goal: Goal) -> Iterator[RuleApplication]:
    conclusion = goal.conclusion
    if isinstance(conclusion, Or):
        yield RuleApplication(
            Rule.OR_INTRODUCTION,
            goal,
            (Premise.either(
                goal.with_conclusion(conclusion.left),
                goal.with_conclusion(conclusion.right),
            ),),
        )


def or_elimination(goal: Goal) -> Iterator[RuleApplication]:
    premise = goal.premise
    if isinstance(premise, Or):
        yield RuleApplication(
            Rule.OR_ELIMINATION,
            goal,
            (
                Premise.single(goal.with_premise(premise.left)),
                Premise.single(goal.with_premise(premise.right)),
            ),
        )


def and_elimination(goal: Goal) -> Iterator[RuleApplication]:
    premise = goal.premise
    if isinstance(premise, And):
        yield RuleApplication(
            Rule.AND_ELIMINATION,
            goal,
            (Premise.either(
                goal.with_premise(premise.left),
                goal.with_premise(premise.right),
            ),),
        )


# Precedence order within the core rule set
CORE_RULES: tuple[Callable[[Goal], Iterator[RuleApplication]], ...] = (
    reflexivity,
    described_premise,
    described_conclusion,
    double_negation_premise,
    double_negation_conclusion,
    or_introduction,
    or_elimination,
    and_elimination,
)


# =============================================================================
# RULE SET
# =============================================================================

class RuleSet:
    """
    The immutable rule set an engine resolves against.

    The core rules are always present; axioms are added by extensions
    before resolution starts and never change afterwards.
    """

    __slots__ = ("_axioms",)

    def __init__(self, axioms: Iterable[Axiom] = ()):
        unique: dict[Axiom, Axiom] = {}
        for axiom in axioms:
            if not isinstance(axiom, Axiom):
                raise TypeError(f"Expected an Axiom, got {type(axiom).__name__}")
            unique.setdefault(axiom, axiom)
        self._axioms = tuple(unique.values())

    @classmethod
    def core(cls) -> RuleSet:
        """The core rules alone."""
        return cls()

    @property
    def axioms(self) -> tuple[Axiom, ...]:
        return self._axioms

    def with_axioms(self, *axioms: Axiom) -> RuleSet:
        """A new rule set extended with axioms."""
        return RuleSet(self._axioms + axioms)

    def applications(self, goal: Goal) -> list[RuleApplication]:
        """All rule applications for goal, in precedence order."""
        found: list[RuleApplication] = []
        for rule in CORE_RULES:
            found.extend(rule(goal))
        for axiom in self._axioms:
            if axiom.applies_to(goal):
                found.append(RuleApplication(
                    Rule.AXIOM,
                    goal,
                    (Premise.single(goal.with_premise(axiom.conclusion)),),
                    label=axiom.describe(),
                ))
        found.sort(key=lambda application: application.tier)
        return found

    def __len__(self) -> int:
        return len(CORE_RULES) + len(self._axioms)

    def __repr__(self) -> str:
        return f"RuleSet(axioms={len(self._axioms)})"
