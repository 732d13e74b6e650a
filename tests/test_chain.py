import random
import numpy as np
import pytest
from markovchains.chain import StateChain
from markovchains.errors import IllegalStateError, InvalidArgumentError
from markovchains.table import DenseTransitionTable, TableShape, build_table, build_table_2d, build_table_3d


STATES = ["0", "M", "K", "A", "O", "R", "V"]
TRANSITION_MATRIX_2D = [
    # 0  M  K  A  O  R  V
    [0, 1, 0, 0, 0, 0, 0],  # 0 -> M
    [0, 0, 0, 1, 0, 0, 0],  # M -> A
    [0, 0, 0, 0, 1, 0, 0],  # K -> O
    [0, 0, 0, 0, 0, 1, 0],  # A -> R
    [0, 0, 0, 0, 0, 0, 1],  # O -> V
    [0, 0, 1, 0, 0, 0, 0],  # R -> K
    [0, 0, 0, 0, 0, 0, 1],  # V -> V
]
TRANSITION_MATRIX_3D = [TRANSITION_MATRIX_2D] * len(STATES)


class FixedDraw:
    """Random source that always returns the same number."""
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.value


def _rngs():
    return [
        np.random.default_rng(10983),
        np.random.default_rng(46360),
        random.Random(7357),
        FixedDraw(0.0),
        FixedDraw(np.nextafter(1.0, 0.0)),
    ]


def _check_deterministic(chain, expected="MARKOVVV"):
    produced = ""
    for i in range(len(expected)):
        produced += chain.next()
        assert chain.current() == produced[i]
        assert chain.previous(0) == produced[i]
        if i > 0:
            assert chain.previous() == produced[i - 1]
        for j in range(min(i, chain.order) + 1):
            assert chain.previous(j) == produced[i - j]
    assert produced == expected


@pytest.mark.parametrize("rng", _rngs())
def test_deterministic_chain_order_1(rng):
    chain = StateChain(STATES, build_table_2d(TRANSITION_MATRIX_2D).normalize(), rng=rng)
    _check_deterministic(chain)


@pytest.mark.parametrize("rng", _rngs())
def test_deterministic_chain_order_2(rng):
    chain = StateChain(STATES, build_table_3d(TRANSITION_MATRIX_3D).normalize(), rng=rng)
    _check_deterministic(chain)


def test_default_rng():
    chain = StateChain(STATES, build_table_2d(TRANSITION_MATRIX_2D).normalize())
    _check_deterministic(chain)


class TestStateChain:
    def _chain(self, order=2, rng=None):
        if order == 1:
            table = build_table_2d(TRANSITION_MATRIX_2D)
        else:
            table = build_table_3d(TRANSITION_MATRIX_3D)
        return StateChain(STATES, table.normalize(), rng=rng)

    def test_initial_history(self):
        chain = self._chain()
        assert chain.history() == ["0", "0", "0"]
        assert chain.current() == "0"
        assert chain.previous(2) == "0"

    def test_properties(self):
        chain = self._chain()
        assert chain.order == 2
        assert chain.state_count == 7
        assert chain.states == tuple(STATES)
        assert chain.transition_table.is_normalized()

    def test_history_window_rolls(self):
        chain = self._chain()
        chain.next()
        chain.next()
        chain.next()
        assert chain.history() == ["M", "A", "R"]

    def test_previous_bounds(self):
        chain = self._chain(order=2)
        chain.next()
        assert chain.previous(0) == "M"
        assert chain.previous(2) == "0"
        with pytest.raises(InvalidArgumentError, match="0 <= n <= 2"):
            chain.previous(3)
        with pytest.raises(InvalidArgumentError):
            chain.previous(-1)

    def test_previous_bounds_order_1(self):
        chain = self._chain(order=1)
        chain.next()
        assert chain.previous(1) == "0"
        with pytest.raises(InvalidArgumentError):
            chain.previous(2)

    def test_reset_history(self):
        chain = self._chain()
        for _ in range(5):
            chain.next()
        chain.reset_history()
        assert chain.history() == ["0", "0", "0"]
        _check_deterministic(chain)

    def test_one_draw_per_next(self):
        rng = FixedDraw(0.5)
        chain = self._chain(rng=rng)
        for _ in range(4):
            chain.next()
        assert rng.calls == 4

    def test_set_random(self):
        table = build_table_2d([[1.0, 1.0], [1.0, 1.0]]).normalize()
        low, high = FixedDraw(0.1), FixedDraw(0.9)
        chain = StateChain(["a", "b"], table, rng=low)
        assert chain.next() == "a"
        chain.set_random(high)
        assert chain.next() == "b"
        assert low.calls == 1
        assert high.calls == 1

    def test_duplicate_states(self):
        table = build_table_2d(np.ones((3, 3))).normalize()
        with pytest.raises(InvalidArgumentError, match="unique"):
            StateChain(["a", "b", "a"], table)

    def test_unhashable_states(self):
        table = build_table_2d(np.ones((2, 2))).normalize()
        chain = StateChain([[0], [1]], table, rng=FixedDraw(0.9))
        assert chain.next() == [1]
        with pytest.raises(InvalidArgumentError):
            StateChain([[0], [0]], table)

    def test_state_count_mismatch(self):
        table = build_table_2d(np.ones((3, 3))).normalize()
        with pytest.raises(InvalidArgumentError, match="expects 3 states"):
            StateChain(["a", "b"], table)

    def test_unnormalized_table_fails_on_next(self):
        table = DenseTransitionTable(TableShape(1, 2))
        chain = StateChain(["a", "b"], table)
        with pytest.raises(IllegalStateError):
            chain.next()
        table.normalize()
        assert chain.next() in ("a", "b")

    def test_generated_states_follow_table(self):
        # higher order: the next state only depends on the second previous one
        k = 3
        probs = np.zeros(k ** 3)
        for x in range(k):
            for y in range(k):
                probs[x * k * k + y * k + (x + 1) % k] = 1.0
        chain = StateChain(["a", "b", "c"], build_table(2, k, probs).normalize(), rng=np.random.default_rng(3))
        out = [chain.next() for _ in range(6)]
        for i in range(2, 6):
            assert "abc".index(out[i]) == ("abc".index(out[i - 2]) + 1) % k
