"""
Command line entry point.

    dead-reckoning simulate --duration 30 --plot flight.png
    dead-reckoning replay flight_log.csv --out trajectory.csv
"""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from .filters import EstimatorConfig, FusionCycle, MeasurementModel
from .session import FlightSession
from .sensors.craft import LogPlaybackCraft, SimulatedCraft, flight_plan
from .util.telemetry_log import load_telemetry_log, save_trajectory

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dead-reckoning",
        description="Estimate a vehicle's 3D position from altitude, attitude and body velocity",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--measurement-model', choices=[m.value for m in MeasurementModel],
                        default=MeasurementModel.VELOCITY_PROXY.value,
                        help='How displacement enters the filter (default: velocity_proxy)')
    common.add_argument('--process-noise', type=float, help='Process noise scale (trust in the model)')
    common.add_argument('--measurement-noise', type=float, help='Measurement noise scale (trust in the sensors)')
    common.add_argument('--initial-covariance', type=float, help='Initial covariance scale')
    common.add_argument('-o', '--out', help='Write the estimated trajectory to this CSV')
    common.add_argument('--plot', help='Save a trajectory figure to this path')
    common.add_argument('--show', action='store_true', help='Show the figure interactively')
    common.add_argument('--overwrite', action='store_true', help='Overwrite existing output files')
    common.add_argument('-v', '--verbose', action='count', default=0, help='More logging (-vv for per-tick)')

    sub = parser.add_subparsers(dest='command', required=True)

    sim = sub.add_parser('simulate', parents=[common], help='Fly a scripted simulated vehicle')
    sim.add_argument('--duration', type=float, default=30.0, help='Flight length in seconds')
    sim.add_argument('--rate', type=float, default=30.0, help='Telemetry rate in Hz')
    sim.add_argument('--seed', type=int, help='Random seed for the sensor noise')

    replay = sub.add_parser('replay', parents=[common], help='Replay a recorded telemetry log')
    replay.add_argument('log', help='Telemetry log (csv, tsv, json, parquet, xlsx)')
    return parser


def config_from_args(args: argparse.Namespace) -> EstimatorConfig:
    return EstimatorConfig.from_dict({
        "process_noise_scale": args.process_noise,
        "measurement_noise_scale": args.measurement_noise,
        "initial_covariance_scale": args.initial_covariance,
        "measurement_model": args.measurement_model,
    })


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")

    try:
        config = config_from_args(args)
        fusion = FusionCycle(config)

        truth = None
        if args.command == 'simulate':
            craft = SimulatedCraft(rate_hz=args.rate, duration=args.duration, seed=args.seed)
            session = FlightSession(craft, fusion, sink=craft, intents=flight_plan(args.rate, args.duration))
            print(f"[1/3] Simulating {args.duration:.1f}s flight at {args.rate:.0f} Hz")
        else:
            df_log = load_telemetry_log(args.log)
            craft = LogPlaybackCraft(df_log)
            session = FlightSession(craft, fusion)
            print(f"[1/3] Replaying {len(craft)} samples from {args.log}")

        trajectory = session.run()
        if args.command == 'simulate':
            truth = np.array(craft.true_path)
        print(f"     [OK] {len(trajectory)} estimates, {session.skipped} skipped, "
              f"{session.reinitializations} reinitialisations")

        if len(trajectory):
            last = trajectory.iloc[-1]
            print(f"[2/3] Final position: x = {last.x:3.2f}m, y = {last.y:3.2f}m, z = {last.z:3.2f}m")
        if args.out:
            out = save_trajectory(trajectory, args.out, overwrite=args.overwrite)
            print(f"     [OK] Trajectory written to: {out}")

        if args.plot or args.show:
            from .viz import plot_trajectory

            print("[3/3] Generating visualization")
            plot_trajectory(trajectory, truth=truth, save_path=args.plot, show=args.show)
            if args.plot:
                print(f"     [OK] Plot saved to: {args.plot}")
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        print(f"[FAILED] ERROR: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
