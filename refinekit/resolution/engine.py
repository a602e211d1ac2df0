"""
Resolution Engine for refinekit.

Given a goal "premise ==> conclusion", searches the rule set for a
derivation and issues an Implication witness, or fails.

Design principles:
- Depth-first search over rule applications, in precedence order
- Reflexivity is tried before any structural decomposition
- A goal already on the active resolution stack is never revisited:
  that branch fails and the cut is recorded as a cycle
- Proved goals are memoised; failures are memoised only when they did
  not depend on a cycle cut at an ancestor goal
- In strict mode a proof that depended on a cut at an ancestor is not
  memoised either, since the cut may have hidden a competing derivation
- Failure is never silent: NoProof or AmbiguousProof reach the caller

Resolution is value-independent and pure. The same goal always yields
the same witness (the same object) or the same failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from itertools import groupby
from typing import Iterable, Optional, Union

from ..tags import Tag
from .rules import RuleApplication, RuleSet
from .witness import Derivation, Goal, Implication, issue_witness

logger = logging.getLogger(__name__)


# =============================================================================
# ERRORS
# =============================================================================

class ResolutionError(Exception):
    """Raised when a witness cannot be issued for a goal."""

    kind = "resolution_error"

    def __init__(self, goal: Goal, reason: str):
        self.goal = goal
        self.reason = reason
        super().__init__(f"[{self.kind}] {goal.render()}: {reason}")


class NoProof(ResolutionError):
    """No derivation exists for the goal in this rule set."""

    kind = "no_proof"

    def __init__(self, goal: Goal, cycles: tuple[Goal, ...] = ()):
        self.cycles = cycles
        reason = "no derivation in the rule set"
        if cycles:
            rendered = "; ".join(cycle.render() for cycle in cycles)
            reason += f" (cycle cut at: {rendered})"
        super().__init__(goal, reason)


class AmbiguousProof(ResolutionError):
    """More than one rule application proves the goal at the same precedence."""

    kind = "ambiguous_proof"

    def __init__(self, goal: Goal, candidates: tuple[str, ...]):
        self.candidates = candidates
        super().__init__(goal, f"competing derivations: {', '.join(candidates)}")


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class ProofResult:
    """Result of a proof attempt."""
    success: bool
    goal: Goal
    witness: Optional[Implication] = None
    derivation: Optional[Derivation] = None
    error: Optional[ResolutionError] = None


@dataclass
class BatchProofResult:
    """Result of proving several goals."""
    total_goals: int
    proved: list[Implication] = field(default_factory=list)
    failed: list[ResolutionError] = field(default_factory=list)

    @property
    def proof_rate(self) -> float:
        if self.total_goals == 0:
            return 0.0
        return len(self.proved) / self.total_goals


@dataclass(frozen=True)
class _Outcome:
    """Internal search outcome for a single goal or application."""
    derivation: Optional[Derivation]
    cycles: tuple[Goal, ...] = ()
    # Goals cut on the active stack whose own search has not finished yet
    pending: frozenset[Goal] = frozenset()


GoalLike = Union[Goal, tuple]


# =============================================================================
# ENGINE
# =============================================================================

class ResolutionEngine:
    """
    Certifies implications between tags.

    Args:
        rules: The rule set to resolve against (core rules by default)
        strict: When True, two different successful rule applications in
            the same precedence tier raise AmbiguousProof. When False, the
            first success in precedence order wins.
    """

    def __init__(self, rules: Optional[RuleSet] = None, strict: bool = False):
        self._rules = rules if rules is not None else RuleSet.core()
        self._strict = strict
        self._proved: dict[Goal, Derivation] = {}
        self._refuted: dict[Goal, tuple[Goal, ...]] = {}
        self._witnesses: dict[Goal, Implication] = {}

    @property
    def rules(self) -> RuleSet:
        return self._rules

    @property
    def strict(self) -> bool:
        return self._strict

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def derive(
        self,
        premise: Tag,
        conclusion: Tag,
        value_type: type = object,
    ) -> Derivation:
        """
        Find the derivation of premise ==> conclusion.

        Raises:
            NoProof: If the rule set cannot derive the goal
            AmbiguousProof: In strict mode, if the derivation is not unique
        """
        return self._derive_goal(Goal(premise, conclusion, value_type))

    def prove(
        self,
        premise: Tag,
        conclusion: Tag,
        value_type: type = object,
    ) -> Implication:
        """
        Issue the witness for premise ==> conclusion.

        Raises:
            NoProof: If the rule set cannot derive the goal
            AmbiguousProof: In strict mode, if the derivation is not unique
        """
        return self._prove_goal(Goal(premise, conclusion, value_type))

    def implies(
        self,
        premise: Tag,
        conclusion: Tag,
        value_type: type = object,
    ) -> bool:
        """Whether a witness exists. AmbiguousProof still propagates."""
        try:
            self._derive_goal(Goal(premise, conclusion, value_type))
        except NoProof:
            return False
        return True

    def try_prove(
        self,
        premise: Tag,
        conclusion: Tag,
        value_type: type = object,
    ) -> ProofResult:
        """Attempt a proof, returning a result instead of raising."""
        return self._try_goal(Goal(premise, conclusion, value_type))

    def prove_all(self, goals: Iterable[GoalLike]) -> BatchProofResult:
        """
        Prove a batch of goals.

        Each goal is processed independently. Failures do not affect
        other goals. Goals may be Goal objects or (premise, conclusion)
        / (premise, conclusion, value_type) tuples.
        """
        normalized = [self._as_goal(goal) for goal in goals]
        result = BatchProofResult(total_goals=len(normalized))

        for goal in normalized:
            attempt = self._try_goal(goal)
            if attempt.success and attempt.witness is not None:
                result.proved.append(attempt.witness)
            elif attempt.error is not None:
                result.failed.append(attempt.error)

        return result

    def cache_info(self) -> dict[str, int]:
        return {
            "proved": len(self._proved),
            "refuted": len(self._refuted),
            "witnesses": len(self._witnesses),
        }

    def clear_cache(self) -> None:
        self._proved.clear()
        self._refuted.clear()
        self._witnesses.clear()

    # -------------------------------------------------------------------------
    # Goal-level helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _as_goal(goal: GoalLike) -> Goal:
        if isinstance(goal, Goal):
            return goal
        if isinstance(goal, tuple) and len(goal) in (2, 3):
            return Goal(*goal)
        raise TypeError(f"Expected a Goal or (premise, conclusion[, value_type]), got {goal!r}")

    def _derive_goal(self, goal: Goal) -> Derivation:
        outcome = self._solve(goal, set())
        if outcome.derivation is None:
            logger.debug("No proof for %s", goal.render())
            raise NoProof(goal, outcome.cycles)
        return outcome.derivation

    def _prove_goal(self, goal: Goal) -> Implication:
        witness = self._witnesses.get(goal)
        if witness is not None:
            return witness
        self._derive_goal(goal)
        return self._witnesses.setdefault(goal, issue_witness(goal))

    def _try_goal(self, goal: Goal) -> ProofResult:
        try:
            witness = self._prove_goal(goal)
        except ResolutionError as e:
            return ProofResult(success=False, goal=goal, error=e)
        return ProofResult(
            success=True,
            goal=goal,
            witness=witness,
            derivation=self._proved[goal],
        )

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def _solve(self, goal: Goal, stack: set[Goal]) -> _Outcome:
        proved = self._proved.get(goal)
        if proved is not None:
            return _Outcome(proved)

        refuted = self._refuted.get(goal)
        if refuted is not None:
            return _Outcome(None, cycles=refuted)

        if goal in stack:
            logger.debug("Cycle cut at %s", goal.render())
            return _Outcome(None, cycles=(goal,), pending=frozenset((goal,)))

        stack.add(goal)
        try:
            outcome = self._search(goal, stack)
        finally:
            stack.discard(goal)

        # Cuts at the goal itself are closed once its own search ends
        outcome = replace(outcome, pending=outcome.pending - {goal})

        if outcome.derivation is not None:
            # A strict search that cut a branch at an ancestor may have missed a competitor
            if not (self._strict and outcome.pending):
                self._proved[goal] = outcome.derivation
            logger.debug("Proved %s by %s", goal.render(), outcome.derivation.rule.value)
        elif not outcome.pending:
            self._refuted[goal] = outcome.cycles
        return outcome

    def _search(self, goal: Goal, stack: set[Goal]) -> _Outcome:
        pending: frozenset[Goal] = frozenset()
        cycles: list[Goal] = []

        applications = self._rules.applications(goal)
        for _, tier in groupby(applications, key=lambda application: application.tier):
            successes: list[tuple[RuleApplication, Derivation]] = []
            for application in tier:
                outcome = self._apply(application, stack)
                pending |= outcome.pending
                cycles.extend(outcome.cycles)
                if outcome.derivation is not None:
                    successes.append((application, outcome.derivation))
                    if not self._strict:
                        break

            if len(successes) > 1:
                raise AmbiguousProof(
                    goal,
                    tuple(application.describe() for application, _ in successes),
                )
            if successes:
                return _Outcome(successes[0][1], tuple(dict.fromkeys(cycles)), pending)

        return _Outcome(None, tuple(dict.fromkeys(cycles)), pending)

    def _apply(self, application: RuleApplication, stack: set[Goal]) -> _Outcome:
        pending: frozenset[Goal] = frozenset()
        cycles: list[Goal] = []
        subproofs: list[Derivation] = []

        for premise in application.premises:
            found: Optional[Derivation] = None
            for alternative in premise.alternatives:
                outcome = self._solve(alternative, stack)
                pending |= outcome.pending
                cycles.extend(outcome.cycles)
                if outcome.derivation is not None:
                    found = outcome.derivation
                    break
            if found is None:
                return _Outcome(None, tuple(cycles), pending)
            subproofs.append(found)

        derivation = Derivation(
            rule=application.rule,
            goal=application.goal,
            premises=tuple(subproofs),
            label=application.label,
        )
        return _Outcome(derivation, tuple(cycles), pending)


# =============================================================================
# SHARED ENGINE
# =============================================================================

_default_engine: Optional[ResolutionEngine] = None


def default_engine() -> ResolutionEngine:
    """The shared engine over the core rules, non-strict."""
    global _default_engine
    if _default_engine is None:
        _default_engine = ResolutionEngine()
    return _default_engine


def implies(premise: Tag, conclusion: Tag, value_type: type = object) -> bool:
    """Whether premise ==> conclusion is derivable from the core rules."""
    return default_engine().implies(premise, conclusion, value_type)
