"""
Markov chains over arbitrary state values.

StateChain binds a list of unique caller-supplied states to the integer
indices of a TransitionTable and keeps a rolling window of the order + 1 most
recent states, so successive next() calls continue the same sequence.
"""

from __future__ import annotations
from collections import deque
from typing import Generic, List, Sequence, Tuple, TypeVar
import numpy as np

from .errors import InvalidArgumentError
from .sampler import ChainSampler
from .table import TransitionTable

S = TypeVar("S")


def all_unique(states: Sequence) -> bool:
    try:
        return len(set(states)) == len(states)
    except TypeError:
        # unhashable states: fall back to pairwise equality
        return all(states.index(s) == i for i, s in enumerate(states))


class StateChain(Generic[S]):
    """Markov chain of any order over a fixed list of states.

    - states are the chain's alphabet; states[i] corresponds to table index i.
    - table must have state_count == len(states); it is normalized by the
      caller, sampling an unnormalized table raises IllegalStateError.
    - rng is any source with random() -> float in [0, 1); defaults to
      np.random.default_rng().

    The history starts as order + 1 copies of states[0].
    """
    def __init__(
        self,
        states: Sequence[S],
        table: TransitionTable,
        rng: np.random.Generator | None = None,
    ):
        states = list(states)
        if not all_unique(states):
            raise InvalidArgumentError("All objects in the state list should be unique.")
        if table.state_count != len(states):
            raise InvalidArgumentError(
                f"len(states) = {len(states)}, but the transition table expects "
                f"{table.state_count} states"
            )
        self.states: Tuple[S, ...] = tuple(states)
        self._sampler = ChainSampler(table)
        self.rng = rng if rng is not None else np.random.default_rng()
        self._history: deque = deque(maxlen=table.order + 1)
        self._raw_history: deque = deque(maxlen=table.order + 1)
        self.reset_history()

    @property
    def order(self) -> int:
        return self._sampler.order

    @property
    def state_count(self) -> int:
        return self._sampler.state_count

    @property
    def transition_table(self) -> TransitionTable:
        return self._sampler.table

    def set_random(self, rng) -> None:
        """Replace the random source used by later next() calls."""
        self.rng = rng

    def next(self) -> S:
        """Move the chain to the next state and return it."""
        r = float(self.rng.random())
        prefix = list(self._raw_history)[1:]
        raw_next = self._sampler.next_index(r, prefix)
        state = self.states[raw_next]
        self._history.append(state)
        self._raw_history.append(raw_next)
        return state

    def current(self) -> S:
        """The current state, same as previous(0)."""
        return self._history[-1]

    def previous(self, n: int = 1) -> S:
        """The n-th previous state, 0 <= n <= order; n = 0 is the current state."""
        if not 0 <= n <= self.order:
            raise InvalidArgumentError(f"Expected 0 <= n <= {self.order}, received n = {n}.")
        return self._history[-n - 1]

    def history(self) -> List[S]:
        """Copy of the state window, least recent first."""
        return list(self._history)

    def reset_history(self) -> None:
        """Refill the window with states[0]; the table is left untouched."""
        self._history.clear()
        self._raw_history.clear()
        for _ in range(self.order + 1):
            self._history.append(self.states[0])
            self._raw_history.append(0)
