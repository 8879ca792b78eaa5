#!/usr/bin/env python3
"""
Run a headless swarm battle.

Usage:
    python scripts/run_swarm_battle.py --swarms 15 --ticks 3600 --seed 42
    python scripts/run_swarm_battle.py --config battle.json --respawn --record recordings/
"""

import argparse
import random
import sys
from collections import Counter
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from swarmsim.config import SimulationConfig
from swarmsim.recorder import SimulationRecorder, create_recording_filename
from swarmsim.scenarios import populate, replenish
from swarmsim.simulation import Simulation, SimulationEventType


def main():
    parser = argparse.ArgumentParser(
        description="Run a headless swarm-vs-swarm battle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/run_swarm_battle.py --swarms 15 --ticks 3600
    python scripts/run_swarm_battle.py --seed 7 --respawn --verbose
    python scripts/run_swarm_battle.py --config battle.json --record recordings/
        """,
    )

    parser.add_argument(
        "--config",
        help="Path to a simulation config JSON file",
    )
    parser.add_argument(
        "--swarms",
        type=int,
        default=None,
        help="Number of swarms to spawn (default: config max_swarms)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=3600,
        help="Maximum number of ticks to run (default: 3600, one minute at 60 Hz)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible battles",
    )
    parser.add_argument(
        "--respawn",
        action="store_true",
        help="Respawn swarms at the arena edges to keep the swarm count up",
    )
    parser.add_argument(
        "--record",
        metavar="DIR",
        help="Save a JSON recording into this directory",
    )
    parser.add_argument(
        "--frame-interval",
        type=int,
        default=10,
        help="Ticks between recorded snapshot frames (default: 10)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print every shot, kill and swarm loss",
    )

    args = parser.parse_args()

    try:
        config = SimulationConfig.from_json(args.config) if args.config else SimulationConfig()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    seed = args.seed if args.seed is not None else config.seed
    rng = random.Random(seed)
    swarm_count = args.swarms if args.swarms is not None else config.max_swarms

    sim = Simulation(config)
    populate(sim, swarm_count, rng)

    print(f"Arena: {config.arena_width:.0f} x {config.arena_height:.0f}")
    print(f"Swarms: {len(sim.swarms())}  Ships: {sim.ship_count}  Seed: {seed}")

    # tallied from callbacks so the summary works with record_events off
    tally: Counter = Counter()
    sim.add_event_callback(lambda event: tally.update([event.event_type]))

    if args.verbose:
        verbose_types = {
            SimulationEventType.SHOT_FIRED,
            SimulationEventType.SHIP_DESTROYED,
            SimulationEventType.SWARM_DESTROYED,
        }
        sim.add_event_callback(
            lambda event: print(event) if event.event_type in verbose_types else None
        )

    recorder = None
    if args.record:
        recorder = SimulationRecorder(frame_interval=args.frame_interval)
        recorder.start_recording(sim)

    if args.respawn:
        for _ in range(args.ticks):
            replenish(sim, swarm_count, rng)
            sim.step()
    else:
        sim.run(args.ticks)

    shots = tally[SimulationEventType.SHOT_FIRED]
    kills = tally[SimulationEventType.SHIP_DESTROYED]

    print()
    print("=" * 60)
    print(f"Finished after {sim.tick} ticks")
    print(f"Shots fired: {shots}  Ships destroyed: {kills}")
    print(f"Swarms remaining: {len(sim.swarms())}")
    for i, swarm in enumerate(sim.swarms()):
        print(f"  [{i}] {swarm.ship_count:3d} ships at "
              f"({swarm.center.x:7.1f}, {swarm.center.y:7.1f})")

    if recorder is not None:
        recorder.end_recording()
        filename = create_recording_filename(swarm_count, seed)
        path = recorder.save(str(Path(args.record) / filename))
        print(f"Recording saved to {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
