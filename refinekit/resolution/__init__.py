# Resolution package for refinekit
"""
Implication resolution.

Certifies that one tag implies another from a fixed rule set,
issuing opaque witnesses or failing with NoProof / AmbiguousProof.
"""
