"""
Simulation Recorder - records simulation events and periodic world frames.

Captures:
- Every simulation event (spawns, decisions, locks, shots, damage, kills)
- World snapshots every frame_interval ticks
- Configuration and final outcome
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .simulation import Simulation, SimulationEvent, SimulationEventType


@dataclass
class SimulationRecording:
    """Complete recording of a simulation run."""
    # Metadata
    recording_version: str = "1.0"
    recorded_at: str = ""
    config: Dict[str, Any] = field(default_factory=dict)

    # Events and snapshot frames
    events: List[Dict[str, Any]] = field(default_factory=list)
    frames: List[Dict[str, Any]] = field(default_factory=list)

    # Result
    ticks: int = 0
    swarms_remaining: int = 0
    ships_remaining: int = 0
    shots_fired: int = 0
    ships_destroyed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulationRecording':
        return cls(**data)


class SimulationRecorder:
    """
    Records a simulation for later replay or analysis.

    Usage:
        recorder = SimulationRecorder(frame_interval=10)
        recorder.start_recording(sim)

        sim.run(ticks=600)

        recorder.end_recording()
        recorder.save("swarm_battle.json")
    """

    def __init__(self, frame_interval: int = 10):
        if frame_interval < 1:
            raise ValueError(f"frame_interval must be >= 1, got {frame_interval}")
        self.frame_interval = frame_interval
        self.recording = SimulationRecording()
        self._sim: Optional[Simulation] = None
        self._last_frame_tick: Optional[int] = None

    @property
    def is_recording(self) -> bool:
        return self._sim is not None

    def start_recording(self, sim: Simulation) -> None:
        """Attach to a simulation and start recording."""
        if self._sim is not None:
            self.end_recording()

        self._sim = sim
        self._last_frame_tick = None
        self.recording = SimulationRecording(
            recorded_at=datetime.now().isoformat(),
            config=sim.config.to_dict(),
        )
        sim.add_event_callback(self._on_event)
        sim.add_tick_callback(self._on_tick)
        self.record_frame()

    def _on_event(self, event: SimulationEvent) -> None:
        self.recording.events.append(event.to_dict())

        if event.event_type == SimulationEventType.SHOT_FIRED:
            self.recording.shots_fired += 1
        elif event.event_type == SimulationEventType.SHIP_DESTROYED:
            self.recording.ships_destroyed += 1

    def _on_tick(self, sim: Simulation) -> None:
        if sim.tick % self.frame_interval == 0:
            self.record_frame()

    def record_frame(self) -> None:
        """Record a snapshot of the current world state."""
        if self._sim is None:
            return
        self.recording.frames.append(self._sim.get_snapshot())
        self._last_frame_tick = self._sim.tick

    def end_recording(self) -> SimulationRecording:
        """Detach from the simulation and fill in the outcome."""
        sim = self._sim
        if sim is not None:
            sim.remove_event_callback(self._on_event)
            sim.remove_tick_callback(self._on_tick)
            if self._last_frame_tick != sim.tick:
                self.record_frame()
            self.recording.ticks = sim.tick
            self.recording.swarms_remaining = len(sim.swarms())
            self.recording.ships_remaining = sim.ship_count
        self._sim = None
        return self.recording

    def save(self, filepath: str) -> str:
        """Save the recording as JSON. Returns the path written."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(self.recording.to_json())
        return str(path)

    @staticmethod
    def load(filepath: str) -> SimulationRecording:
        """Load a recording saved with save()."""
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Recording not found: {filepath}")
        with open(path) as f:
            return SimulationRecording.from_dict(json.load(f))


def create_recording_filename(swarm_count: int, seed: Optional[int] = None) -> str:
    """Timestamped filename such as swarms_15_seed42_20260101_120000.json."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    seed_part = f"_seed{seed}" if seed is not None else ""
    return f"swarms_{swarm_count}{seed_part}_{timestamp}.json"
