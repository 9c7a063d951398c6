#!/usr/bin/env python3
"""
Damped Newton Demo - riemannsolve

Newton's method for the zero of the tangent vector field p -> proj_p(a) on
the S² sphere, i.e. the point a itself, started far away from it. The
affine covariant damping shortens the first steps; close to the zero full
Newton steps are taken and convergence is quadratic.

The Newton direction is computed three ways: with the direct coordinate
solve callback, with the in-place callback and with a GMRES sub-solver.
"""

import logging

import jax
import jax.numpy as jnp

import riemannsolve as rs


def main():
    logging.basicConfig(level=logging.INFO)
    jax.config.update("jax_enable_x64", True)

    sphere = rs.Sphere(2)
    bundle = rs.TangentBundle(sphere)
    a = jnp.array([0.0, 0.6, 0.8])

    def bundle_map(M, p):
        return M.proj(p, a)

    def derivative(M, p):
        return lambda X: -jnp.dot(a, p) * X

    def connection_map(E, q):
        return q

    p0 = jnp.array([0.0, -0.6, 0.8])

    sub_solvers = {
        "direct": (rs.newton_direction, rs.EvaluationType.ALLOCATING),
        "in place": (rs.newton_direction_into, rs.EvaluationType.INPLACE),
        "gmres": (rs.NewtonEquationSubproblem(), rs.CoordinateLinearSolverState("gmres")),
    }
    for label, (sub_problem, sub_state) in sub_solvers.items():
        state = rs.vectorbundle_newton(
            sphere,
            bundle,
            bundle_map,
            derivative,
            connection_map,
            p0,
            sub_problem=sub_problem,
            sub_state=sub_state,
            stopping_criterion=rs.StopAfterIteration(30) | rs.StopWhenChangeLess(1e-13),
            record=["stepsize", "change"],
            return_state=True,
        )
        print(f"--- {label} ---")
        print(state)
        for k, (alpha, change) in enumerate(zip(state.get_record("stepsize"), state.get_record("change")), start=1):
            print(f"iteration {k:2d}: damping {alpha:.4f}, change {change:.3e}")
        print(f"distance to a: {sphere.dist(state.get_solver_result(), a):.3e}")


if __name__ == "__main__":
    main()
