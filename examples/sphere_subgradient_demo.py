#!/usr/bin/env python3
"""
Sphere Subgradient Demo - riemannsolve

This script finds the point on the S² sphere closest to the North Pole by
minimizing the nonsmooth geodesic distance with the Riemannian subgradient
method, once with constant and once with decreasing stepsizes.
"""

import logging
from pathlib import Path

import jax
import jax.numpy as jnp
import matplotlib.pyplot as plt

import riemannsolve as rs


def distance_to(target):
    """Geodesic distance to target and a subgradient of it."""

    def cost(M, p):
        return M.dist(p, target)

    def subgradient(M, p):
        d = M.dist(p, target)
        return jnp.where(d > 1e-12, -M.log(p, target) / jnp.maximum(d, 1e-12), M.zero_vector(p))

    return cost, subgradient


def main():
    logging.basicConfig(level=logging.INFO)
    jax.config.update("jax_enable_x64", True)

    # 1. Define the sphere and the North Pole target
    sphere = rs.Sphere(2)
    north = jnp.array([0.0, 0.0, 1.0])
    cost, subgradient = distance_to(north)

    # 2. Random start point
    p0 = sphere.random_point(jax.random.key(42))

    # 3. Solve with two stepsize rules
    runs = {
        "constant 0.05": rs.ConstantStepsize(0.05),
        "decreasing 1/k": rs.DecreasingStepsize(length=1.0),
    }
    records = {}
    for label, stepsize in runs.items():
        state = rs.subgradient_method(
            sphere,
            cost,
            subgradient,
            p0,
            stepsize=stepsize,
            stopping_criterion=rs.StopAfterIteration(200) | rs.StopWhenSubgradientNormLess(1e-10),
            record=["cost"],
            return_state=True,
        )
        records[label] = state.get_record("cost")
        print(state)
        print(f"{label}: best point {state.get_solver_result()} with distance {state.cost_star:.3e}")

    # 4. Visualization of the cost history
    fig, ax = plt.subplots(figsize=(8, 5))
    for label, costs in records.items():
        ax.semilogy(range(1, len(costs) + 1), jnp.maximum(jnp.array(costs), 1e-16), label=label)
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Distance to the North Pole")
    ax.set_title("Riemannian subgradient method on S²")
    ax.legend()
    ax.grid(True, alpha=0.3)

    output = Path("output")
    output.mkdir(exist_ok=True)
    fig.savefig(output / "sphere_subgradient.png")
    plt.show()


if __name__ == "__main__":
    main()
