"""
Roulette-wheel selection of successor states.

sample_index() turns one uniform draw r in [0, 1) into an index of a weight
row by scanning its cumulative mass. ChainSampler applies it to the rows of a
TransitionTable, after checking the draw, the history and that the table has
been normalized.
"""

from __future__ import annotations
from typing import Sequence
import numpy as np

from .errors import IllegalStateError, InvalidArgumentError
from .table import TransitionTable


def check_random_number(r: float) -> float:
    r = float(r)
    if not 0.0 <= r < 1.0:
        raise InvalidArgumentError(f"random_number = {r}; must be a number >= 0 and < 1.0")
    return r


def sample_index(row: Sequence[float] | np.ndarray, r: float) -> int:
    """Pick an index of row with probability proportional to its weight.

    The draw is scaled by the row's own sum, so unnormalized rows are handled.
    If rounding keeps the leftover mass from going negative during the scan,
    the last index with non-zero weight is returned.
    """
    row = np.asarray(row, dtype=float)
    r = check_random_number(r)
    with np.errstate(over="ignore", invalid="ignore"):
        leftover = r * float(row.sum())
    for i in range(row.shape[0]):
        leftover -= row[i]
        if leftover < 0.0:
            return i
    i = row.shape[0] - 1
    while i > 0 and row[i] == 0.0:
        i -= 1
    return i


class ChainSampler:
    """Draws the next state index of a Markov chain from its transition table."""
    def __init__(self, table: TransitionTable):
        self.table = table

    @property
    def order(self) -> int:
        return self.table.order

    @property
    def state_count(self) -> int:
        return self.table.state_count

    def next_index(self, r: float, history: Sequence[int]) -> int:
        """Return the next state index given a draw r in [0, 1) and a history.

        history holds exactly order state indices, least recent first.
        """
        r = check_random_number(r)
        history = self.table.check_states(history, as_history=True, argument_offset=1)
        if not self.table.is_normalized():
            raise IllegalStateError("Transition table has not been normalized")
        return sample_index(self.table.get_row(*history), r)
