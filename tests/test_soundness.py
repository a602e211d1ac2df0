"""
Property tests over generated combinator trees.

These tests verify, over a small integer domain:
1. Runtime laws of each combinator (negation, double negation, Or, And,
   description transparency, strict equality)
2. Reflexivity for every generated tag
3. Soundness: whenever a witness for C1 ==> C2 is issued, every value
   satisfying C1 also satisfies C2
4. Or-elimination correctness on generated trees

Trees are generated with a seeded random.Random so every run is
reproducible.
"""

import random

import pytest

from refinekit.tags import And, DescribedAs, Not, Or, StrictEqual, Tag
from refinekit.implementation import ImplementationRegistry
from refinekit.resolution.engine import ResolutionEngine


DOMAIN = range(-2, 4)
SEEDS = range(25)
MAX_DEPTH = 3

REGISTRY = ImplementationRegistry()


# =============================================================================
# GENERATORS
# =============================================================================

def random_leaf(rng: random.Random) -> Tag:
    return StrictEqual(rng.choice(DOMAIN))


def random_tag(rng: random.Random, depth: int = MAX_DEPTH) -> Tag:
    """A random combinator tree of bounded depth over StrictEqual leaves."""
    if depth == 0 or rng.random() < 0.25:
        return random_leaf(rng)
    shape = rng.choice(("not", "or", "and", "described"))
    if shape == "not":
        return Not(random_tag(rng, depth - 1))
    if shape == "or":
        return Or(random_tag(rng, depth - 1), random_tag(rng, depth - 1))
    if shape == "and":
        return And(random_tag(rng, depth - 1), random_tag(rng, depth - 1))
    return DescribedAs(random_tag(rng, depth - 1), f"label-{rng.randrange(3)}")


def related_pairs(rng: random.Random, count: int = 40) -> list[tuple[Tag, Tag]]:
    """
    Candidate goals, biased towards ones the rules can prove.

    Mixes unrelated pairs with pairs built by wrapping one side in the
    shapes the rules decompose.
    """
    pairs = []
    for _ in range(count):
        base = random_tag(rng)
        other = random_tag(rng)
        pairs.append((base, other))
        pairs.append((base, Or(other, base)))
        pairs.append((And(base, other), Or(rng.choice((base, other)), random_tag(rng))))
        pairs.append((Not(Not(base)), DescribedAs(base, "x")))
        pairs.append((Or(base, base), Not(Not(base))))
        pairs.append((Or(base, other), Or(other, base)))
    return pairs


def truth(tag: Tag) -> list[bool]:
    impl = REGISTRY.resolve(tag, int)
    return [impl.test(v) for v in DOMAIN]


# =============================================================================
# RUNTIME LAWS
# =============================================================================

@pytest.mark.parametrize("seed", SEEDS)
class TestRuntimeLaws:

    def test_negation(self, seed):
        tag = random_tag(random.Random(seed))
        assert truth(Not(tag)) == [not t for t in truth(tag)]

    def test_double_negation(self, seed):
        tag = random_tag(random.Random(seed))
        assert truth(Not(Not(tag))) == truth(tag)

    def test_disjunction(self, seed):
        rng = random.Random(seed)
        left, right = random_tag(rng), random_tag(rng)
        expected = [l or r for l, r in zip(truth(left), truth(right))]
        assert truth(Or(left, right)) == expected

    def test_conjunction(self, seed):
        rng = random.Random(seed)
        left, right = random_tag(rng), random_tag(rng)
        expected = [l and r for l, r in zip(truth(left), truth(right))]
        assert truth(And(left, right)) == expected

    def test_description_transparency(self, seed):
        tag = random_tag(random.Random(seed))
        described = DescribedAs(tag, "custom message")
        assert truth(described) == truth(tag)
        assert REGISTRY.resolve(described, int).message() == "custom message"

    def test_strict_equality(self, seed):
        literal = random.Random(seed).choice(DOMAIN)
        assert truth(StrictEqual(literal)) == [v == literal for v in DOMAIN]

    def test_message_non_empty(self, seed):
        tag = random_tag(random.Random(seed))
        assert REGISTRY.resolve(tag, int).message()


# =============================================================================
# PROOF PROPERTIES
# =============================================================================

@pytest.mark.parametrize("seed", SEEDS)
class TestProofProperties:

    def test_reflexivity(self, seed):
        engine = ResolutionEngine()
        tag = random_tag(random.Random(seed))
        assert engine.implies(tag, tag, int)

    def test_soundness(self, seed):
        """Every issued witness holds on every sampled value."""
        engine = ResolutionEngine()
        for premise, conclusion in related_pairs(random.Random(seed)):
            if not engine.implies(premise, conclusion, int):
                continue
            for holds_premise, holds_conclusion in zip(truth(premise), truth(conclusion)):
                assert holds_conclusion or not holds_premise, (
                    f"unsound witness for {premise.render()} ==> {conclusion.render()}"
                )

    def test_or_elimination(self, seed):
        """Witnesses for C1 ==> C3 and C2 ==> C3 yield one for Or(C1, C2) ==> C3."""
        engine = ResolutionEngine()
        rng = random.Random(seed)
        target = random_tag(rng)
        second = DescribedAs(Not(Not(target)), "y")
        conclusion = Or(random_tag(rng), target)
        assert engine.implies(target, conclusion, int)
        assert engine.implies(second, conclusion, int)

        premise = Or(target, second)
        assert engine.implies(premise, conclusion, int)
        for holds_premise, holds_conclusion in zip(truth(premise), truth(conclusion)):
            assert holds_conclusion or not holds_premise

    def test_memoised_answers_are_stable(self, seed):
        engine = ResolutionEngine()
        pairs = related_pairs(random.Random(seed), count=10)
        first = [engine.implies(p, c, int) for p, c in pairs]
        second = [engine.implies(p, c, int) for p, c in pairs]
        fresh = ResolutionEngine()
        third = [fresh.implies(p, c, int) for p, c in pairs]
        assert first == second == third
