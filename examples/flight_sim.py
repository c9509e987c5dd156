"""
Dead-Reckoning Flight Simulation
================================

Flies the simulated quadrotor through the scripted flight plan, runs every
telemetry sample through the fusion cycle and compares the estimate with the
true path.

Flow:
1. Build the simulated craft and the flight plan
2. Configure the Kalman estimator
3. Run the flight session (read -> fuse -> command)
4. Write the trajectory CSV
5. Plot estimate vs. truth
"""

import sys
import logging
import numpy as np
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))  # Add project root to path

from dead_reckoning.filters import EstimatorConfig, FusionCycle
from dead_reckoning.session import FlightSession
from dead_reckoning.sensors import SimulatedCraft, flight_plan
from dead_reckoning.util import save_trajectory
from dead_reckoning.viz import plot_trajectory

SAVE_DIR = Path(__file__).parent / "images"
DATA_DIR = Path(__file__).parent / "data"

RATE_HZ = 30.0
DURATION = 30.0


def build_craft():
    print(f"[1/5] Building simulated craft ({DURATION:.0f}s at {RATE_HZ:.0f} Hz)")
    craft = SimulatedCraft(rate_hz=RATE_HZ, duration=DURATION, seed=42)
    intents = flight_plan(RATE_HZ, DURATION)
    print("     [OK] Flight plan: takeoff, forward, turn, forward, climb, land")
    return craft, intents


def configure_estimator():
    print("[2/5] Configuring Kalman estimator")
    config = EstimatorConfig(initial_covariance_scale=1.0)
    fusion = FusionCycle(config)
    print(f"     [OK] Q = {config.process_noise_scale:g} I, R = {config.measurement_noise_scale:g} I, "
          f"P0 = {config.initial_covariance_scale:g} I ({config.measurement_model.value})")
    return fusion


def fly(craft, fusion, intents):
    print("[3/5] Flying")
    session = FlightSession(craft, fusion, sink=craft, intents=intents)
    df = session.run()
    truth = np.array(craft.true_path)
    error = np.linalg.norm(df[["x", "y", "z"]].to_numpy() - truth, axis=1)
    print(f"     [OK] {len(df)} estimates, final error {error[-1]:.2f}m, max error {error.max():.2f}m")
    return df, truth


def main():
    print("=" * 80)
    print("DEAD-RECKONING FLIGHT SIMULATION")
    print("=" * 80)
    print()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    try:
        craft, intents = build_craft()
        print()

        fusion = configure_estimator()
        print()

        df, truth = fly(craft, fusion, intents)
        print()

        print("[4/5] Writing trajectory")
        csv_path = save_trajectory(df, DATA_DIR / "flight_sim_trajectory.csv", overwrite=True)
        print(f"     [OK] Trajectory written to: {csv_path}")
        print()

        print("[5/5] Generating visualization")
        SAVE_DIR.mkdir(exist_ok=True)
        output_path = SAVE_DIR / "flight_sim.png"
        plot_trajectory(df, truth=truth, save_path=str(output_path), show=True)
        print(f"     [OK] Plot saved to: {output_path}")
        print()
        print("=" * 80)
        print("[SUCCESS] FLIGHT SIMULATION COMPLETE")
        print("=" * 80)

    except Exception as e:
        print(f"\n[FAILED] ERROR: {e}")
        import traceback
        traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
