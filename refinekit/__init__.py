# refinekit
# Constraint algebra with a provable implication relation

"""
Core invariant: a value validated against one tag may be treated as
satisfying a second tag only when a derivation proves the first implies
the second. No derivation, no witness.

This package provides the predicate tags, their runtime implementations,
and the resolution engine that certifies implications between them.
"""
