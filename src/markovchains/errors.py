"""
Error types for markovchains.
"""

from __future__ import annotations


class InvalidArgumentError(ValueError):
    """
    Malformed argument detected before any mutation.

    Raised for wrong arity, out-of-range states, negative probabilities,
    duplicate states, random draws outside [0, 1) and mismatched array sizes.
    The message names the offending argument, its value and the valid range.
    """


class IllegalStateError(RuntimeError):
    """
    Operation attempted while the object is in an incompatible state.

    Sampling from a transition table that has not been normalized raises this
    error; calling ``normalize()`` on the table is the remedy.
    """
