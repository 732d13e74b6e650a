"""
Dense transition tables for N-th order Markov chains.

A table of order n over k states holds k**(n+1) non-negative weights in one
flat float array. The weight of moving to state s_n given the history
s_0 .. s_{n-1} (least recent first) is stored at the mixed-radix offset

    offset = sum_i s_i * k**(n - i)

with the most significant digit first, so the k successors of a fixed history
form one contiguous row.

This module provides:
- TableShape: the immutable (order, state_count) pair, with offset
  encoding/decoding, state validation and the row-prefix odometer.
- TransitionTable: the minimal read interface used by samplers and chains.
- DenseTransitionTable: the flat numpy-backed table with per-row normalization.
- build_table, build_table_2d, build_table_3d and random_transition_table.
"""

from __future__ import annotations
import logging
import numbers
from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple
import numpy as np

from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)

# Returned by first_invalid_state() when every state is in range.
NO_INVALID_STATES = -1


@dataclass(frozen=True)
class TableShape:
    """Order and number of states of a transition table."""
    order: int
    state_count: int

    def __post_init__(self) -> None:
        if self.state_count < 1:
            raise InvalidArgumentError(f"state_count={self.state_count}, should be >= 1")
        if self.order < 1:
            raise InvalidArgumentError(f"order={self.order}, should be >= 1")

    @property
    def size(self) -> int:
        """Number of cells, state_count ** (order + 1)."""
        return self.state_count ** (self.order + 1)

    @property
    def row_count(self) -> int:
        return self.state_count ** self.order

    def encode(self, states: Sequence[int]) -> int:
        """Return the flat offset of a state tuple.

        A full tuple of order + 1 states addresses a single cell; a history of
        order states addresses the first cell of its row.
        """
        k = self.state_count
        power = k ** self.order
        index = 0
        for s in states:
            index += int(s) * power
            power //= k
        return index

    def decode(self, offset: int) -> Tuple[int, ...]:
        """Inverse of encode() for full tuples of order + 1 states."""
        offset = int(offset)
        if not 0 <= offset < self.size:
            raise InvalidArgumentError(
                f"offset = {offset} is not in the range [0, {self.size})"
            )
        digits = []
        for _ in range(self.order + 1):
            offset, digit = divmod(offset, self.state_count)
            digits.append(digit)
        return tuple(reversed(digits))

    def prefixes(self) -> Iterator[Tuple[int, ...]]:
        """Enumerate every row prefix (history) of length order.

        Works as an odometer: the last (least significant) digit is incremented
        first and carries into the previous digit when it wraps around, so the
        rows come out in ascending offset order.
        """
        digits = [0] * self.order
        while True:
            yield tuple(digits)
            for i in range(self.order - 1, -1, -1):
                digits[i] = (digits[i] + 1) % self.state_count
                if digits[i] != 0:
                    break
            else:
                return

    def first_invalid_state(self, states: Sequence[int]) -> int:
        """Position of the first state that is not an integer in [0, state_count), or NO_INVALID_STATES."""
        for i, s in enumerate(states):
            if not isinstance(s, numbers.Integral) or not 0 <= s < self.state_count:
                return i
        return NO_INVALID_STATES

    def check_states(
        self,
        states: Sequence[int],
        as_history: bool = False,
        argument_offset: int = 0,
    ) -> Tuple[int, ...]:
        """Validate a state tuple and return it as plain ints.

        - as_history=True expects order states (a row prefix), otherwise
          order + 1 states (a cell index).
        - argument_offset shifts the argument position reported in errors, for
          callers whose states do not start at their first argument.
        """
        states = tuple(states)
        if as_history:
            if len(states) != self.order:
                raise InvalidArgumentError(
                    f"Received {len(states)} states. The number of states given as history "
                    f"should match the order (={self.order})."
                )
        elif len(states) != self.order + 1:
            raise InvalidArgumentError(
                f"Received {len(states)} states. The number of states given as index "
                f"should match the order + 1 (={self.order + 1})."
            )
        invalid = self.first_invalid_state(states)
        if invalid != NO_INVALID_STATES:
            raise InvalidArgumentError(
                f"Argument {invalid + argument_offset} = {states[invalid]!r} is not an integer in the range "
                f"[0, {self.state_count}), which is not a valid state."
            )
        return tuple(int(s) for s in states)


def _check_probability(value: float, label: str) -> float:
    value = float(value)
    if not (np.isfinite(value) and value >= 0.0):
        raise InvalidArgumentError(f"Invalid probability value: {label} = {value}; must be finite and >= 0")
    return value


class TransitionTable:
    """Read interface of a transition table.

    Samplers and chains only rely on these members, so the dense backing can
    be swapped for another one with the same shape semantics.
    """
    shape: TableShape

    @property
    def order(self) -> int:
        return self.shape.order

    @property
    def state_count(self) -> int:
        return self.shape.state_count

    def get(self, *states: int) -> float:
        raise NotImplementedError

    def get_row(self, *prefix: int) -> np.ndarray:
        """Return a fresh copy of the k weights following the given history."""
        prefix = self.check_states(prefix, as_history=True)
        row = np.zeros(self.state_count, dtype=float)
        for i in range(self.state_count):
            row[i] = self.get(*prefix, i)
        return row

    def normalize(self) -> "TransitionTable":
        raise NotImplementedError

    def is_normalized(self) -> bool:
        return False

    def check_states(
        self,
        states: Sequence[int],
        as_history: bool = False,
        argument_offset: int = 0,
    ) -> Tuple[int, ...]:
        return self.shape.check_states(states, as_history=as_history, argument_offset=argument_offset)

    def first_invalid_state(self, states: Sequence[int]) -> int:
        return self.shape.first_invalid_state(states)


class DenseTransitionTable(TransitionTable):
    """Transition table stored as one flat array of state_count ** (order + 1) weights.

    A fresh table is never normalized. Any write, even to a single cell, marks
    the whole table as not normalized again.
    """
    def __init__(self, shape: TableShape, probabilities: Sequence[float] | np.ndarray | None = None):
        self.shape = shape
        if probabilities is None:
            self._data = create_transition_array(shape.order, shape.state_count)
        else:
            p = np.array(probabilities, dtype=float).reshape(-1)
            for i, value in enumerate(p):
                _check_probability(value, f"probabilities[{i}]")
            if p.size != shape.size:
                raise InvalidArgumentError(
                    f"probabilities.length={p.size}, with order={shape.order} and "
                    f"state_count={shape.state_count} the expected length is {shape.size}"
                )
            self._data = p
        self._normalized = False

    def __repr__(self) -> str:
        return (
            f"DenseTransitionTable(order={self.order}, state_count={self.state_count}, "
            f"normalized={self._normalized})"
        )

    def get(self, *states: int) -> float:
        states = self.check_states(states)
        return float(self._data[self.shape.encode(states)])

    def set(self, probability: float, *states: int) -> "DenseTransitionTable":
        """Set the weight of one transition (order + 1 states, least recent first)."""
        probability = _check_probability(probability, "probability")
        states = self.check_states(states, argument_offset=1)
        self._data[self.shape.encode(states)] = probability
        self._normalized = False
        return self

    def set_row(self, probabilities: Sequence[float], *prefix: int) -> "DenseTransitionTable":
        """Replace the k weights that follow the given history."""
        p = np.array(probabilities, dtype=float).reshape(-1)
        if p.size != self.state_count:
            raise InvalidArgumentError(
                f"Probability array length should match the number of states "
                f"({self.state_count}), but was {p.size}"
            )
        prefix = self.check_states(prefix, as_history=True, argument_offset=1)
        for i, value in enumerate(p):
            _check_probability(value, f"probabilities[{i}]")
        start = self.shape.encode(prefix)
        self._data[start:start + self.state_count] = p
        self._normalized = False
        return self

    def normalize(self) -> "DenseTransitionTable":
        """Scale every row to sum to 1; rows without weight become uniform.

        Calling it on an already normalized table leaves the data untouched.
        """
        if not self._normalized:
            for prefix in self.shape.prefixes():
                self._normalize_row(self.shape.encode(prefix))
            self._normalized = True
            logger.debug("normalized %d rows (order=%d, k=%d)", self.shape.row_count, self.order, self.state_count)
        return self

    def is_normalized(self) -> bool:
        return self._normalized

    def as_array(self) -> np.ndarray:
        """Copy of the flat weight array."""
        return self._data.copy()

    def _normalize_row(self, start: int) -> None:
        k = self.state_count
        row = self._data[start:start + k]
        with np.errstate(over="ignore"):
            total = float(row.sum())
        if not np.isfinite(total):
            # finite weights whose sum overflows
            row /= row.max()
            total = float(row.sum())
        if total > 0.0:
            row /= total
        else:
            row[:] = 1.0 / k
        # rounding can leave the row just short of 1; the sampler needs the full mass
        total = float(row.sum())
        if total < 1.0:
            i = k - 1
            while i > 0 and row[i] == 0.0:
                i -= 1
            row[i] += 1.0 - total


def create_transition_array(order: int, state_count: int) -> np.ndarray:
    """Zero-filled flat array with the right size for (order, state_count)."""
    return np.zeros(TableShape(order, state_count).size, dtype=float)


def build_table(order: int, state_count: int, probabilities: Sequence[float] | np.ndarray) -> DenseTransitionTable:
    """Table of any order from a flat array of state_count ** (order + 1) weights."""
    return DenseTransitionTable(TableShape(int(order), int(state_count)), probabilities)


def build_table_2d(matrix) -> DenseTransitionTable:
    """First order table; matrix[x][y] is the weight of moving from x to y."""
    M = np.asarray(matrix, dtype=float)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise InvalidArgumentError(f"matrix shape = {M.shape}; a square 2d matrix is required")
    return build_table(1, M.shape[1], M.reshape(-1))


def build_table_3d(matrix) -> DenseTransitionTable:
    """Second order table; matrix[x][y][z] is the weight of z after x then y."""
    M = np.asarray(matrix, dtype=float)
    if M.ndim != 3 or not (M.shape[0] == M.shape[1] == M.shape[2]):
        raise InvalidArgumentError(f"matrix shape = {M.shape}; a cubic 3d matrix is required")
    return build_table(2, M.shape[2], M.reshape(-1))


def random_transition_table(
    order: int,
    state_count: int,
    min_weight: float = 1e-6,
    rng: np.random.Generator | None = None,
) -> DenseTransitionTable:
    """Unnormalized table with strictly positive random weights.

    Weights are Gamma(1, 1) draws floored at min_weight, so every row has
    full support once normalized.
    """
    if rng is None:
        rng = np.random.default_rng()
    shape = TableShape(int(order), int(state_count))
    G = rng.gamma(shape=1.0, scale=1.0, size=shape.size)
    return DenseTransitionTable(shape, np.maximum(G, min_weight))
