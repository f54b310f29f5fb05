import pytest

from engine.solver import TerminationReason, bisect, expand_upper_bound


def test_converges_on_upper_side():
    result = bisect(lambda x: x - 10, 0, 100, precision=0.01)
    assert result.converged
    assert result.reason == TerminationReason.CONVERGED
    assert 10 <= result.root <= 10.01 + 1e-9
    assert 0 <= result.value <= 0.01 + 1e-9


def test_lower_bound_already_satisfies():
    result = bisect(lambda x: x + 1, 0, 10)
    assert result.converged
    assert result.reason == TerminationReason.LOWER_BOUND
    assert result.root == 0
    assert result.iterations == 0


def test_no_sign_change_returns_hi():
    result = bisect(lambda x: x - 1_000, 0, 10)
    assert not result.converged
    assert result.reason == TerminationReason.NO_SIGN_CHANGE
    assert result.root == 10


def test_iteration_cap():
    result = bisect(lambda x: x - 10, 0, 1_000_000, precision=1e-9, max_iterations=5)
    assert not result.converged
    assert result.reason == TerminationReason.ITERATION_CAP
    assert result.iterations == 5
    assert result.root == pytest.approx(31_250)
    assert result.value >= 0


def test_invalid_arguments():
    with pytest.raises(ValueError):
        bisect(lambda x: x, 10, 0)
    with pytest.raises(ValueError):
        bisect(lambda x: x, 0, 10, precision=0)
    with pytest.raises(ValueError):
        bisect(lambda x: x, 0, 10, max_iterations=0)


def test_expand_upper_bound_doubles():
    f = lambda x: x - 1_000
    hi = expand_upper_bound(f, 0, 10)
    assert hi == 1_280
    assert f(hi) >= 0


def test_expand_upper_bound_keeps_valid_bracket():
    assert expand_upper_bound(lambda x: x - 5, 0, 10) == 10
