"""
N-th order Markov chain engine: dense transition tables, roulette-wheel
sampling, stateful chains over arbitrary states and forward-algorithm training.

Table Functions:
- build_table / build_table_2d / build_table_3d: construct unnormalized tables
- DenseTransitionTable.normalize: explicit, idempotent per-row normalization
- random_transition_table supports an rng parameter for reproducibility

Chains:
- StateChain.next draws once from its rng per call and advances the history
- train_forward fits a chain to sample sequences, with an optional end state
"""

from .errors import InvalidArgumentError, IllegalStateError
from .table import (
    NO_INVALID_STATES,
    TableShape,
    TransitionTable,
    DenseTransitionTable,
    create_transition_array,
    build_table,
    build_table_2d,
    build_table_3d,
    random_transition_table,
)
from .sampler import ChainSampler, sample_index
from .chain import StateChain
from .training import train_table, train_forward

__all__ = [
    "InvalidArgumentError",
    "IllegalStateError",
    "NO_INVALID_STATES",
    "TableShape",
    "TransitionTable",
    "DenseTransitionTable",
    "create_transition_array",
    "build_table",
    "build_table_2d",
    "build_table_3d",
    "random_transition_table",
    "ChainSampler",
    "sample_index",
    "StateChain",
    "train_table",
    "train_forward",
]
