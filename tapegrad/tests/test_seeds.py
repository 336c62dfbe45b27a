import pytest

from tapegrad import (
    Arena, create, get_instance, use_arena,
    grad, grads, grads_list, value,
)


def test_value_passthrough(arena):
    assert value(3.5) == 3.5
    assert value(create(2.0)) == pytest.approx(2.0)


def test_grad_single_input():
    # d/dx (x * x + 3 / x) = 2x - 3 / x^2
    g = grad(lambda x: x * x + 3 / x, 2.0)
    assert g == pytest.approx(4.0 - 0.75)


def test_grads_dict():
    out = grads(lambda v: (v["a"] * v["b"] + v["c"]) * v["f"],
                {"a": 2.0, "b": -3.0, "c": 10.0, "f": -2.0})
    assert list(out) == ["a", "b", "c", "f"]
    assert out["a"] == pytest.approx(6.0)
    assert out["b"] == pytest.approx(-4.0)
    assert out["c"] == pytest.approx(-2.0)
    assert out["f"] == pytest.approx(4.0)


def test_grads_list():
    assert grads_list(lambda xs: xs[0] * xs[0] + 3 * xs[1], [2.0, 4.0]) == \
        pytest.approx([4.0, 3.0])


def test_helpers_do_not_touch_default_arena():
    default = get_instance()
    grad(lambda x: x * 2, 1.0)
    assert get_instance() is default
    assert default.num_nodes() == 0


def test_helpers_restore_caller_arena():
    mine = Arena()
    with use_arena(mine):
        grads(lambda v: v["x"] + 1, {"x": 1.0})
        assert get_instance() is mine
    assert mine.num_nodes() == 0
    mine.destroy()


def test_absent_output_raises():
    with pytest.raises(ValueError):
        grad(lambda x: x + None, 1.0)


def test_non_value_output_raises():
    with pytest.raises(TypeError):
        grad(lambda x: 1.0, 1.0)
