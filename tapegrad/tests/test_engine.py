import pytest

from tapegrad import (
    Arena, create, backward, zero_grad, get_instance,
    add, sub, mul, div,
)

TOL = 1e-5


class TestSingleOp:
    def test_add_backward(self, arena):
        # L = a + b  =>  dL/da = 1, dL/db = 1
        a = create(2.0, "a")
        b = create(-3.0, "b")
        L = add(a, b)
        backward(L)
        assert L.data == pytest.approx(-1.0)
        assert L.grad == 1.0
        assert a.grad == pytest.approx(1.0)
        assert b.grad == pytest.approx(1.0)

    def test_sub_backward(self, arena):
        a = create(5.0, "a")
        b = create(3.0, "b")
        L = sub(a, b)
        backward(L)
        assert L.data == pytest.approx(2.0)
        assert a.grad == pytest.approx(1.0)
        assert b.grad == pytest.approx(-1.0)

    def test_mul_backward_routes_each_partial(self, arena):
        # dL/da = b and dL/db = a, each into its own operand
        a = create(2.0, "a")
        b = create(-3.0, "b")
        L = mul(a, b)
        backward(L)
        assert L.data == pytest.approx(-6.0)
        assert a.grad == pytest.approx(-3.0)
        assert b.grad == pytest.approx(2.0)

    def test_div_backward(self, arena):
        a = create(6.0, "a")
        b = create(3.0, "b")
        L = div(a, b)
        backward(L)
        assert L.data == pytest.approx(2.0)
        assert a.grad == pytest.approx(1.0 / 3.0, abs=TOL)
        assert b.grad == pytest.approx(-6.0 / 9.0, abs=TOL)

    def test_value_method(self, arena):
        a = create(6.0, "a")
        b = create(2.0, "b")
        L = a / b
        L.backward()
        assert a.grad == pytest.approx(0.5)
        assert b.grad == pytest.approx(-1.5)


class TestChains:
    def test_chain_add_mul(self, arena):
        # L = (a + b) * c
        a, b, c = create(2.0, "a"), create(3.0, "b"), create(4.0, "c")
        L = mul(add(a, b), c)
        backward(L)
        assert L.data == pytest.approx(20.0)
        assert a.grad == pytest.approx(4.0)
        assert b.grad == pytest.approx(4.0)
        assert c.grad == pytest.approx(5.0)

    def test_chain_complex(self, arena):
        # L = ((a * b) + c) * f
        a = create(2.0, "a")
        b = create(-3.0, "b")
        c = create(10.0, "c")
        f = create(-2.0, "f")
        e = mul(a, b)
        d = add(e, c)
        L = mul(d, f)
        backward(L)
        assert L.data == pytest.approx(-8.0)
        assert a.grad == pytest.approx(6.0)
        assert b.grad == pytest.approx(-4.0)
        assert c.grad == pytest.approx(-2.0)
        assert f.grad == pytest.approx(4.0)
        assert e.grad == pytest.approx(-2.0)
        assert d.grad == pytest.approx(-2.0)

    def test_chain_div_sub(self, arena):
        # L = (a * b) / c - f
        a = create(2.0, "a")
        b = create(-3.0, "b")
        c = create(10.0, "c")
        f = create(-2.0, "f")
        L = sub(div(mul(a, b), c), f)
        backward(L)
        assert L.data == pytest.approx(1.4, abs=TOL)
        assert a.grad == pytest.approx(-0.3, abs=TOL)
        assert b.grad == pytest.approx(0.2, abs=TOL)
        assert c.grad == pytest.approx(0.06, abs=TOL)
        assert f.grad == pytest.approx(-1.0, abs=TOL)

    def test_shared_subexpression(self, arena):
        # L = e * e + e with e = a * b
        a = create(2.0, "a")
        b = create(3.0, "b")
        e = a * b
        L = e * e + e
        backward(L)
        # dL/de = 2e + 1 = 13
        assert e.grad == pytest.approx(13.0)
        assert a.grad == pytest.approx(13.0 * 3.0)
        assert b.grad == pytest.approx(13.0 * 2.0)


class TestAliasing:
    def test_same_value_add(self, arena):
        a = create(3.0, "a")
        L = add(a, a)
        backward(L)
        assert L.data == pytest.approx(6.0)
        assert a.grad == pytest.approx(2.0)

    def test_same_value_mul(self, arena):
        a = create(3.0, "a")
        L = mul(a, a)
        backward(L)
        assert L.data == pytest.approx(9.0)
        assert a.grad == pytest.approx(6.0)

    def test_same_value_sub(self, arena):
        a = create(3.0, "a")
        L = sub(a, a)
        backward(L)
        assert L.data == 0.0
        assert a.grad == 0.0


class TestRequiresGrad:
    def test_no_grad_propagation(self, arena):
        a = create(2.0, "a", requires_grad=False)
        b = create(3.0, "b", requires_grad=False)
        c = add(a, b)
        backward(c)
        assert a.grad == 0.0
        assert b.grad == 0.0

    def test_sink_operand_not_written(self, arena):
        a = create(2.0, "a", requires_grad=False)
        b = create(3.0, "b")
        c = mul(a, b)
        assert c.data == pytest.approx(6.0)
        backward(c)
        assert a.grad == 0.0
        assert b.grad == pytest.approx(2.0)

    def test_backward_none_is_noop(self, arena):
        a = create(1.0, "a")
        backward(None)
        assert a.grad == 0.0


class TestAccumulation:
    def test_two_passes_double(self, arena):
        a = create(2.0, "a")
        b = create(3.0, "b")
        c = mul(a, b)
        backward(c)
        backward(c)
        assert a.grad == pytest.approx(6.0)
        assert b.grad == pytest.approx(4.0)
        # the seed is assigned, not accumulated
        assert c.grad == 1.0

    def test_zero_grad(self, arena):
        a = create(2.0, "a")
        b = create(3.0, "b")
        c = mul(a, b)
        backward(c)
        assert a.grad == pytest.approx(3.0)
        zero_grad(arena)
        assert a.grad == 0.0
        assert b.grad == 0.0
        assert c.grad == 0.0

    def test_zero_grad_then_backward_matches_single_pass(self, arena):
        a = create(2.0, "a")
        b = create(3.0, "b")
        c = add(mul(a, b), a)
        backward(c)
        first = (a.grad, b.grad)
        zero_grad()
        backward(c)
        assert (a.grad, b.grad) == first

    def test_zero_grad_default_arena(self):
        a = create(2.0, "a")
        L = a * 3.0
        backward(L)
        zero_grad()
        assert a.grad == 0.0
        assert get_instance().num_nodes() == 3

    def test_zero_grad_explicit_arena_leaves_default_alone(self):
        other = Arena()
        a = create(2.0, "a")
        b = create(1.0, "b", arena=other)
        a.grad = 5.0
        b.grad = 5.0
        zero_grad(other)
        assert a.grad == 5.0
        assert b.grad == 0.0
        other.destroy()
