import numpy as np
import pytest

from specode import IntegrationError, Problem
from specode.numpy import (
    FixedStepper,
    compilation_cache,
    entry_point,
    register_stepper,
    resolve_stepper,
    solve,
    solve_adaptive,
    time_grid,
    warmup,
)


def decay(u, p, t):  # noqa: ARG001
    return -p * u


def decay_inplace(du, u, p, t):  # noqa: ARG001
    du[:] = -p * u


def oscillator(du, u, p, t):  # noqa: ARG001
    du[0] = u[1]
    du[1] = -p * u[0]


def _make_callbacks(n):
    def make(k):
        def f(u, p, t):  # noqa: ARG001
            return -(p + k) * u

        return f

    return [make(k) for k in range(n)]


@pytest.mark.parametrize("policy", ["none", "auto", "full"])
@pytest.mark.parametrize("f", [decay, decay_inplace])
def test_exponential_decay_rk4(policy, f):
    prob = Problem(f, [1.0, 2.0], (0.0, 10.0), 0.5, policy=policy)
    sol = solve(prob, 0.01)
    expected = np.array([1.0, 2.0]) * np.exp(-0.5 * 10.0)
    assert sol.t[0] == 0.0 and sol.t[-1] == 10.0
    assert sol.u.shape == (sol.t.size, 2)
    assert np.allclose(sol.final, expected, atol=1e-9)
    assert sol.strategy is prob.strategy


@pytest.mark.parametrize("policy", ["none", "auto", "full"])
def test_policies_agree(policy):
    reference = solve(Problem(oscillator, [1.0, 0.0], (0.0, 2.0), 4.0, policy="full"), 1e-3)
    sol = solve(Problem(oscillator, [1.0, 0.0], (0.0, 2.0), 4.0, policy=policy), 1e-3)
    assert np.allclose(sol.u, reference.u, atol=1e-12)
    assert np.allclose(sol.final, [np.cos(4.0), -2.0 * np.sin(4.0)], atol=1e-6)


@pytest.mark.parametrize("stepper,order", [("euler", 1), ("midpoint", 2), ("rk4", 4)])
def test_stepper_convergence_order(stepper, order):
    prob = Problem(decay, [1.0], (0.0, 1.0), 1.0)
    exact = np.exp(-1.0)
    err_coarse = abs(solve(prob, nsteps=20, stepper=stepper).final[0] - exact)
    err_fine = abs(solve(prob, nsteps=40, stepper=stepper).final[0] - exact)
    assert np.log2(err_coarse / err_fine) == pytest.approx(order, abs=0.2)


def test_none_policy_shares_one_entry_point():
    u0 = np.ones(3)
    entries = {
        id(entry_point(Problem(f, u0, (0.0, 1.0), 1.0, policy="none")))
        for f in _make_callbacks(10)
    }
    entries.add(
        id(entry_point(Problem(oscillator, [1.0, 0.0], (0.0, 1.0), 1.0, policy="none")))
    )
    entries.add(
        id(entry_point(Problem(decay, [1.0], (0.0, 1.0), 1.0, policy="none"), "euler"))
    )
    assert len(entries) == 1
    assert compilation_cache().stats.compilations == 1


def test_full_policy_one_unit_per_shape():
    f, g = _make_callbacks(2)
    pf = Problem(f, [1.0], (0.0, 1.0), 1.0, policy="full")
    pf_again = Problem(f, [3.0], (0.0, 5.0), 2.0, policy="full")
    pg = Problem(g, [1.0], (0.0, 1.0), 1.0, policy="full")

    ef = entry_point(pf)
    assert entry_point(pf_again) is ef
    assert entry_point(pg) is not ef
    assert compilation_cache().stats.compilations == 2


def test_auto_policy_unit_count_is_bounded():
    cache = compilation_cache()
    for f in _make_callbacks(25):
        solve(Problem(f, np.ones(2), (0.0, 1.0), 1.0), nsteps=4)
    assert cache.stats.compilations == 1

    solve(Problem(oscillator, [1.0, 0.0], (0.0, 1.0), 1.0), nsteps=4)
    solve(Problem(decay, np.ones(2, dtype=complex), (0.0, 1.0), 1.0), nsteps=4)
    assert cache.stats.compilations == 3


def test_end_to_end_shared_then_distinct_entry_points():
    def grow(u, p, t):  # noqa: ARG001
        return p * u

    first = Problem(decay, [1.0], (0, 10), 0.3, policy="none")
    second = Problem(oscillator, [1.0, 0.0], (0, 10), 1.0, policy="none")
    s1, s2 = solve(first, 0.01), solve(second, 0.01)
    assert s1.entry is s2.entry
    assert s1.entry.kind == "generic"

    third = Problem(decay, [1.0], (0, 10), 0.3, policy="full")
    fourth = Problem(grow, [1.0], (0, 10), 0.3, policy="full")
    s3, s4 = solve(third, 0.01), solve(fourth, 0.01)
    assert s3.entry is not s4.entry
    assert {s3.entry.kind, s4.entry.kind} == {"specialized"}
    assert np.allclose(s1.u, s3.u)


def test_saveat_keeps_first_and_last():
    prob = Problem(decay, [1.0], (0.0, 1.0), 1.0)
    sol = solve(prob, nsteps=10, saveat=3)
    assert np.allclose(sol.t, [0.0, 0.3, 0.6, 0.9, 1.0])
    assert len(sol) == 5
    full = solve(prob, nsteps=10)
    assert np.allclose(sol.final, full.final)


def test_backward_time_span():
    prob = Problem(decay, [np.exp(-1.0)], (1.0, 0.0), 1.0, policy="full")
    sol = solve(prob, 0.01)
    assert sol.t[-1] == 0.0
    assert np.all(np.diff(sol.t) < 0)
    assert sol.final[0] == pytest.approx(1.0, abs=1e-9)


def test_time_grid_clips_last_step():
    ts = time_grid((0.0, 1.0), dt=0.3)
    assert np.allclose(ts, [0.0, 0.3, 0.6, 0.9, 1.0])
    assert time_grid((0.0, 1.0), dt=0.1).size == 11
    with pytest.raises(ValueError):
        time_grid((0.0, 1.0))
    with pytest.raises(ValueError):
        time_grid((0.0, 1.0), dt=0.1, nsteps=10)
    with pytest.raises(ValueError):
        time_grid((0.0, 1.0), dt=0.0)
    with pytest.raises(TypeError):
        time_grid((0.0, 1.0), nsteps=2.5)


def test_solve_validates_arguments():
    prob = Problem(decay, [1.0], (0.0, 1.0), 1.0)
    with pytest.raises(ValueError):
        solve(prob, 0.1, saveat=0)
    with pytest.raises(ValueError):
        solve(prob, 0.1, stepper="leapfrog")
    with pytest.raises(TypeError):
        solve("not a problem", 0.1)


def test_matrix_state():
    A = np.array([[0.0, 1.0], [-1.0, 0.0]])

    def rhs(u, p, t):  # noqa: ARG001
        return A @ u

    prob = Problem(rhs, np.eye(2), (0.0, np.pi / 2), None, policy="auto")
    sol = solve(prob, nsteps=200)
    assert sol.u.shape == (201, 2, 2)
    assert np.allclose(sol.final, [[0.0, 1.0], [-1.0, 0.0]], atol=1e-8)


def test_register_custom_stepper():
    class Heun(FixedStepper):
        name = "heun"
        stages = 2

        def step(self, rhs, u, p, t, dt, work):
            k1, k2, _ = work
            rhs(k1, u, p, t)
            rhs(k2, u + dt * k1, p, t + dt)
            return u + 0.5 * dt * (k1 + k2)

        def step_oop(self, f, u, p, t, dt):
            k1 = f(u, p, t)
            return u + 0.5 * dt * (k1 + f(u + dt * k1, p, t + dt))

    register_stepper("heun", Heun())
    assert resolve_stepper("HEUN").name == "heun"
    for policy in ("none", "auto", "full"):
        sol = solve(Problem(decay, [1.0], (0.0, 1.0), 1.0, policy=policy), 1e-3, stepper="heun")
        assert sol.final[0] == pytest.approx(np.exp(-1.0), abs=1e-6)


def test_warmup_compiles_without_solving():
    prob = Problem(decay, [1.0], (0.0, 1.0), 1.0, policy="full")
    entry = warmup(prob)
    assert compilation_cache().stats.compilations == 1
    assert solve(prob, 0.1).entry is entry


def test_solve_adaptive_matches_exact():
    prob = Problem(oscillator, [1.0, 0.0], (0.0, 2.0), 4.0, policy="full")
    t_eval = np.linspace(0.0, 2.0, 11)
    sol = solve_adaptive(prob, rtol=1e-10, atol=1e-12, t_eval=t_eval)
    assert sol.entry is None
    assert sol.u.shape == (11, 2)
    assert np.allclose(sol.u[:, 0], np.cos(2.0 * t_eval), atol=1e-7)


def test_solve_adaptive_failure_raises():
    def blowup(u, p, t):  # noqa: ARG001
        return u**2

    prob = Problem(blowup, [1.0], (0.0, 2.0), None)
    with pytest.raises(IntegrationError):
        solve_adaptive(prob, method="RK45")


@pytest.mark.parametrize("policy", ["none", "auto", "full"])
def test_callback_with_default_argument_is_out_of_place(policy):
    def scaled(u, p, t, scale=1.0):  # noqa: ARG001
        return -scale * p * u

    prob = Problem(scaled, [1.0], (0.0, 1.0), 0.5, policy=policy)
    assert not prob.inplace
    sol = solve(prob, 0.01)
    assert sol.final[0] == pytest.approx(np.exp(-0.5), abs=1e-9)
