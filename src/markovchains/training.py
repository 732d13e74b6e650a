"""
Maximum-likelihood training of transition tables (forward algorithm).

Every window of order + 1 consecutive states in the sample sequences adds one
count to the matching table cell; normalizing the counts afterwards yields the
empirical transition probabilities. Each sequence is preceded by order copies
of states[0], so the first symbols are counted against that start context and
sequences shorter than the order are still used.
"""

from __future__ import annotations
import logging
from collections import deque
from typing import Iterable, Sequence, TypeVar
import numpy as np

from .chain import StateChain, all_unique
from .errors import InvalidArgumentError
from .table import DenseTransitionTable, TableShape

logger = logging.getLogger(__name__)

S = TypeVar("S")


def _state_index(states: Sequence[S], state: S) -> int:
    try:
        return states.index(state)
    except ValueError:
        raise InvalidArgumentError(f"state = {state!r} is not one of the {len(states)} known states") from None


def train_table(
    order: int,
    states: Sequence[S],
    sample_sequences: Iterable[Sequence[S]],
    end_state: S | None = None,
) -> DenseTransitionTable:
    """Count transitions in the samples and return the normalized table.

    If end_state is given, the end of every sequence is counted as a final
    transition into end_state.
    """
    states = list(states)
    if not all_unique(states):
        raise InvalidArgumentError("All objects in the state list should be unique.")
    table = DenseTransitionTable(TableShape(int(order), len(states)))
    n_sequences = 0
    n_transitions = 0
    for sequence in sample_sequences:
        history = deque([0] * table.order)
        symbols = list(sequence)
        if end_state is not None:
            symbols.append(end_state)
        for symbol in symbols:
            history.append(_state_index(states, symbol))
            table.set(table.get(*history) + 1.0, *history)
            history.popleft()
            n_transitions += 1
        n_sequences += 1
    logger.debug("counted %d transitions in %d sequences", n_transitions, n_sequences)
    return table.normalize()


def train_forward(
    order: int,
    states: Sequence[S],
    sample_sequences: Iterable[Sequence[S]],
    end_state: S | None = None,
    rng: np.random.Generator | None = None,
) -> StateChain[S]:
    """Train a StateChain of the given order on the sample sequences.

    The resulting chain generates sequences that resemble the samples; with
    end_state set, reaching end_state marks the end of a generated sequence.
    """
    states = list(states)
    table = train_table(order, states, sample_sequences, end_state=end_state)
    return StateChain(states, table, rng=rng)
