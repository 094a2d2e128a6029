"""
main.py — Demo Driver
======================
Runs the fluid2d core the way an application would: inject sources,
step, read back. Rendering and timing live here, not in the core.

Usage:
    python main.py                    # Headless stats (default)
    python main.py --mode live        # Live visualization
    python main.py --mode benchmark   # Per-stage performance breakdown
"""

import argparse
import logging

import numpy as np


def run_live(N: int = 64, iterations: int = 20):
    """Live interactive visualization."""
    from fluid2d import FluidSimulation
    from visualizer import FluidVisualizer

    print(f"Starting live simulation (N={N})...")
    print("Close the window to exit.\n")

    sim = FluidSimulation(N=N, dt=0.1, diffusion=0.00005, viscosity=0.00001,
                          iterations=iterations)
    viz = FluidVisualizer(sim)
    viz.run(fps=30)


def run_headless(N: int = 64, frames: int = 100, iterations: int = 20):
    """Run simulation without display — prints stats every 10 frames."""
    from fluid2d import FluidSimulation

    print(f"\nHeadless simulation | N={N} | {frames} frames")
    print(f"{'─'*60}")

    sim = FluidSimulation(N=N, dt=0.1, diffusion=0.00005, viscosity=0.00001,
                          iterations=iterations)
    total_times = []

    for f in range(frames):
        # Smoke source at bottom center, pushing up
        sim.add_smoke_source(N / 2, 2, density_rate=3.0, velocity=(0.0, 15.0))

        metrics = sim.step()
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            print(f"  Frame {f:03d} | {metrics['total_ms']:6.1f}ms "
                  f"({metrics['fps']:.1f} FPS) | "
                  f"div_max={metrics['divergence_max']:.5f} | "
                  f"density={metrics['density_total']:.1f}")

    print(f"\n{'─'*60}")
    print(f"  Average: {np.mean(total_times):.1f}ms/frame ({1000/np.mean(total_times):.1f} FPS)")
    print(f"  Min:     {np.min(total_times):.1f}ms")
    print(f"  Max:     {np.max(total_times):.1f}ms")
    print(f"  Resets:  {sim.resets}")
    sim.print_status()
    sim.close()


def run_benchmark(N: int = 64, frames: int = 50, iterations: int = 20):
    """
    Detailed performance breakdown.
    Shows how long each physics stage takes.
    """
    from fluid2d import FluidSimulation

    print(f"\n{'='*60}")
    print(f"  PHYSICS BENCHMARK | N={N} | {frames} frames | {iterations} sweeps")
    print(f"{'='*60}")

    sim = FluidSimulation(N=N, dt=0.1, diffusion=0.00005, viscosity=0.00001,
                          iterations=iterations)

    # Warm up (the first step also pays for numba compilation)
    for _ in range(5):
        sim.add_smoke_source(N / 2, 2)
        sim.step()

    logs = []
    for _ in range(frames):
        sim.add_smoke_source(N / 2, 2, density_rate=3.0, velocity=(0.0, 15.0))
        logs.append(sim.step())

    keys = ["diffuse_vel_ms", "project1_ms", "advect_vel_ms", "project2_ms",
            "diffuse_den_ms", "advect_den_ms", "total_ms"]

    print(f"\n{'Step':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.2f}ms {np.min(vals):>7.2f}ms {np.max(vals):>7.2f}ms")

    total_vals = [m["total_ms"] for m in logs]
    print(f"\n{'─'*50}")
    print(f"  FPS (physics only): {1000/np.mean(total_vals):.1f}")
    sim.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="2D Stable Fluids demo")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--N",          type=int, default=64,  help="Grid resolution (default: 64)")
    parser.add_argument("--frames",     type=int, default=100, help="Number of frames")
    parser.add_argument("--iterations", type=int, default=20,  help="Gauss-Seidel sweeps per solve")
    parser.add_argument("--log-level",  default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.mode == "live":
        run_live(N=args.N, iterations=args.iterations)
    elif args.mode == "headless":
        run_headless(N=args.N, frames=args.frames, iterations=args.iterations)
    elif args.mode == "benchmark":
        run_benchmark(N=args.N, frames=args.frames, iterations=args.iterations)
