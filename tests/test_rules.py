"""
Tests for the derivation rule set.

These tests verify:
1. Each rule fires only on its goal shape
2. Premise structure: "all of" vs "one of" alternatives
3. Precedence: reflexivity first, axioms last
4. There is no And-introduction and no StrictEqual rule
5. Axioms and RuleSet immutability
"""

import pytest

from refinekit.tags import And, Atom, DescribedAs, Not, Or, StrictEqual, TagError
from refinekit.resolution.witness import Goal
from refinekit.resolution.rules import (
    Axiom,
    Premise,
    Rule,
    RuleSet,
    RULE_TIERS,
    TIER_AXIOM,
    TIER_REFLEXIVE,
    and_elimination,
    described_conclusion,
    described_premise,
    double_negation_conclusion,
    double_negation_premise,
    or_elimination,
    or_introduction,
    reflexivity,
)


A, B, C = Atom("a"), Atom("b"), Atom("c")


def rules_for(goal: Goal, rule_set: RuleSet = None) -> list[Rule]:
    """Rules that apply to a goal, in precedence order."""
    if rule_set is None:
        rule_set = RuleSet.core()
    return [application.rule for application in rule_set.applications(goal)]


# =============================================================================
# INDIVIDUAL RULES
# =============================================================================

class TestReflexivity:

    def test_fires_on_identical_tags(self):
        applications = list(reflexivity(Goal(Or(A, B), Or(A, B))))
        assert len(applications) == 1
        assert applications[0].premises == ()

    def test_does_not_fire_on_different_tags(self):
        assert list(reflexivity(Goal(A, B))) == []


class TestDescribedAs:

    def test_premise_side(self):
        goal = Goal(DescribedAs(A, "x"), B)
        (application,) = described_premise(goal)
        assert application.premises == (Premise.single(Goal(A, B)),)

    def test_conclusion_side(self):
        goal = Goal(A, DescribedAs(B, "x"))
        (application,) = described_conclusion(goal)
        assert application.premises == (Premise.single(Goal(A, B)),)

    def test_no_fire_without_description(self):
        assert list(described_premise(Goal(A, B))) == []
        assert list(described_conclusion(Goal(A, B))) == []


class TestDoubleNegation:

    def test_premise_side(self):
        goal = Goal(Not(Not(A)), B)
        (application,) = double_negation_premise(goal)
        assert application.premises == (Premise.single(Goal(A, B)),)

    def test_conclusion_side(self):
        goal = Goal(A, Not(Not(B)))
        (application,) = double_negation_conclusion(goal)
        assert application.premises == (Premise.single(Goal(A, B)),)

    def test_single_negation_has_no_rule(self):
        assert list(double_negation_premise(Goal(Not(A), B))) == []
        assert list(double_negation_conclusion(Goal(A, Not(B)))) == []


class TestOrRules:

    def test_introduction_needs_one_branch(self):
        goal = Goal(A, Or(B, C))
        (application,) = or_introduction(goal)
        assert len(application.premises) == 1
        assert application.premises[0].alternatives == (Goal(A, B), Goal(A, C))

    def test_elimination_needs_both_branches(self):
        goal = Goal(Or(A, B), C)
        (application,) = or_elimination(goal)
        assert application.premises == (
            Premise.single(Goal(A, C)),
            Premise.single(Goal(B, C)),
        )


class TestAndRules:

    def test_elimination_needs_one_conjunct(self):
        goal = Goal(And(A, B), C)
        (application,) = and_elimination(goal)
        assert len(application.premises) == 1
        assert application.premises[0].alternatives == (Goal(A, C), Goal(B, C))

    def test_no_and_introduction(self):
        """And on the conclusion side is never decomposed."""
        assert rules_for(Goal(A, And(A, A))) == []

    def test_strict_equal_has_no_rules(self):
        assert rules_for(Goal(StrictEqual(1), StrictEqual(2))) == []


# =============================================================================
# RULE SET
# =============================================================================

class TestRuleSet:

    def test_value_type_propagates_to_subgoals(self):
        goal = Goal(DescribedAs(A, "x"), B, int)
        (application,) = RuleSet.core().applications(goal)
        assert application.premises[0].alternatives[0].value_type is int

    def test_reflexivity_comes_first(self):
        tag = Or(Not(Not(A)), B)
        rules = rules_for(Goal(tag, tag))
        assert rules[0] is Rule.REFLEXIVITY
        assert RULE_TIERS[rules[0]] == TIER_REFLEXIVE

    def test_transparent_rules_before_logical(self):
        goal = Goal(Or(A, B), DescribedAs(C, "x"))
        assert rules_for(goal) == [Rule.DESCRIBED_CONCLUSION, Rule.OR_ELIMINATION]

    def test_axioms_come_last(self):
        rule_set = RuleSet.core().with_axioms(Axiom(Or(A, B), C))
        assert rules_for(Goal(Or(A, B), C), rule_set) == [Rule.OR_ELIMINATION, Rule.AXIOM]

    def test_axiom_chains_through_its_conclusion(self):
        rule_set = RuleSet([Axiom(A, B, name="a-implies-b")])
        (application,) = rule_set.applications(Goal(A, C))
        assert application.premises == (Premise.single(Goal(B, C)),)
        assert application.describe() == "axiom a-implies-b"
        assert application.tier == TIER_AXIOM

    def test_axiom_respects_value_type(self):
        rule_set = RuleSet([Axiom(A, B, int)])
        assert rules_for(Goal(A, C, bool), rule_set) == [Rule.AXIOM]
        assert rules_for(Goal(A, C, str), rule_set) == []

    def test_duplicate_axioms_collapse(self):
        rule_set = RuleSet([Axiom(A, B, name="first"), Axiom(A, B, name="second")])
        assert len(rule_set.axioms) == 1
        assert rule_set.axioms[0].name == "first"

    def test_with_axioms_returns_new_set(self):
        core = RuleSet.core()
        extended = core.with_axioms(Axiom(A, B))
        assert core.axioms == ()
        assert len(extended.axioms) == 1
        assert len(extended) == len(core) + 1

    def test_axiom_requires_tags(self):
        with pytest.raises(TagError):
            Axiom(A, "b")

    def test_rule_set_rejects_non_axioms(self):
        with pytest.raises(TypeError):
            RuleSet([(A, B)])
