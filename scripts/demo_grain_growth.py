#!/usr/bin/env python3
"""
Grain Growth Demonstration Script

Seeds a grid, grows grains with the CA rule until the grid is full, then
switches to Monte Carlo boundary motion and reports how the boundary energy
and grain count evolve. Runs headless through the background runner.
"""

import sys
import os
import json
import logging
import threading

# Add repo root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

from grainca import SimulationRunner, Space, TaskType, neighbourhood_from_name


def run_growth_demo(size=60, grains=25, inclusions=3, mc_steps=20, seed=None,
                    neighbourhood="moore", periodic=True):
    """Run CA growth followed by Monte Carlo coarsening and return metrics."""
    logger.info("=== GRAIN GROWTH DEMONSTRATION ===")
    logger.info(f"Grid size: {size}x{size}, seeds: {grains}, inclusions: {inclusions}")

    space = Space(size, size, TaskType.GRAIN_GROWTH,
                  neighbourhood=neighbourhood_from_name(neighbourhood, periodic),
                  seed=seed)
    space.uniform_placement(grains)
    if inclusions:
        space.place_inclusions(inclusions)

    # Phase 1: CA growth until no empty cell remains
    ca_steps = 0
    while space.grid.count_alive() < size * size:
        if space.step() == 0:
            logger.warning("Growth stalled before filling the grid")
            break
        ca_steps += 1
    logger.info(f"Grid filled after {ca_steps} CA steps, {len(space.grid.unique_markers())} grains")

    # Phase 2: Monte Carlo boundary motion on the background runner
    space.set_monte_carlo()
    energies = [space.total_boundary_energy()]
    done = threading.Event()
    runner = SimulationRunner(space, poll_interval=0.01, max_steps=mc_steps)

    def record():
        energies.append(space.total_boundary_energy())
        if runner.steps_completed >= mc_steps:
            done.set()

    runner.subscribe(record)
    runner.on_error(lambda exc: done.set())
    runner.start()
    done.wait()
    runner.join()
    if runner.error is not None:
        raise runner.error

    for step, energy in enumerate(energies):
        if step % 5 == 0 or step == len(energies) - 1:
            logger.info(f"MC step {step}: boundary energy={energy}")

    return {
        "grid_size": size,
        "seed_grains": grains,
        "ca_steps": ca_steps,
        "mc_steps": runner.steps_completed,
        "grains_after_growth": len(space.grid.unique_markers()),
        "boundary_energy": energies,
        "energy_non_increasing": all(b <= a for a, b in zip(energies, energies[1:])),
    }


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Grain growth and Monte Carlo demonstration")
    parser.add_argument("--size", type=int, default=60, help="Grid size (square)")
    parser.add_argument("--grains", type=int, default=25, help="Seed grains (uniform tiling)")
    parser.add_argument("--inclusions", type=int, default=3, help="Inclusion centres")
    parser.add_argument("--mc-steps", type=int, default=20, help="Monte Carlo steps")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--neighbourhood", choices=["moore", "von_neumann"], default="moore")
    parser.add_argument("--bounded", action="store_true", help="Use bounded instead of periodic edges")
    parser.add_argument("--json", action="store_true", help="Print metrics as JSON")

    args = parser.parse_args()

    try:
        results = run_growth_demo(
            size=args.size,
            grains=args.grains,
            inclusions=args.inclusions,
            mc_steps=args.mc_steps,
            seed=args.seed,
            neighbourhood=args.neighbourhood,
            periodic=not args.bounded,
        )
        if args.json:
            print(json.dumps(results, indent=2))
        else:
            print(f"\nGrew {results['grains_after_growth']} grains in {results['ca_steps']} CA steps")
            print(f"Boundary energy {results['boundary_energy'][0]} -> {results['boundary_energy'][-1]} "
                  f"over {results['mc_steps']} MC steps")

    except Exception as e:
        logger.error(f"Demonstration failed: {e}")
        sys.exit(1)
