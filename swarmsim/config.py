"""
Simulation configuration.

Ship and swarm configs are frozen and shared by reference: every ship of a
swarm points at the same ShipConfig, every swarm at the same SwarmConfig.

Configurations can be built in code or loaded from JSON:

    {
        "arena_width": 1980,
        "arena_height": 1980,
        "max_swarms": 15,
        "ship": {"max_speed": 5.0, "max_accel": 0.5, "max_decel": 2.0},
        "swarm": {"vision_range": 200.0}
    }
"""

import json
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ShipConfig:
    """Per-ship limits, shared by all ships of a simulation."""
    # maximum velocity magnitude (units/tick)
    max_speed: float = 5.0
    # maximum acceleration (thrust)
    max_accel: float = 0.5
    # maximum deceleration (braking)
    max_decel: float = 2.0
    # max range to lock onto an enemy ship
    aim_range: float = 50.0
    # ticks of sustained lock before a shot on a stationary target
    fire_delay: int = 10
    # lock time multiplier against a target moving at its max speed
    lock_time_factor: float = 2.0
    # initial health points (1 hit = 1 damage)
    health: int = 2

    def __post_init__(self) -> None:
        for name in ("max_speed", "max_accel", "max_decel"):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"ShipConfig.{name} must be positive, got {value}")
        if self.aim_range < 0:
            raise ValueError(f"ShipConfig.aim_range must be >= 0, got {self.aim_range}")
        if self.fire_delay < 0:
            raise ValueError(f"ShipConfig.fire_delay must be >= 0, got {self.fire_delay}")
        if self.lock_time_factor < 0:
            raise ValueError(
                f"ShipConfig.lock_time_factor must be >= 0, got {self.lock_time_factor}"
            )
        if self.health < 1:
            raise ValueError(f"ShipConfig.health must be >= 1, got {self.health}")


@dataclass(frozen=True)
class SwarmConfig:
    """Formation and decision tuning shared by all swarms."""
    max_ships: int = 50
    # spacing of the sunflower formation
    scale: float = 6.0
    # range at which other swarms are seen
    vision_range: float = 200.0

    # a visible swarm is a threat when its ship count is at least
    # our count minus this slack
    prey_size_slack: int = 0

    # how far ahead of the center a flee target is placed
    flee_distance: float = 200.0
    # flee targets stay this far inside the arena
    arena_margin: float = 50.0
    wall_detect_range: float = 150.0
    threat_sigma: float = math.pi / 4
    wall_sigma: float = math.pi / 8
    velocity_penalty: float = 0.5
    velocity_sigma: float = math.pi / 3
    # accel/decel multiplier while fleeing
    flee_accel_factor: float = 1.0

    def __post_init__(self) -> None:
        if self.max_ships < 1:
            raise ValueError(f"SwarmConfig.max_ships must be >= 1, got {self.max_ships}")
        if self.scale < 0:
            raise ValueError(f"SwarmConfig.scale must be >= 0, got {self.scale}")
        if self.vision_range < 0:
            raise ValueError(f"SwarmConfig.vision_range must be >= 0, got {self.vision_range}")
        for name in ("wall_detect_range", "threat_sigma", "wall_sigma",
                     "velocity_sigma", "flee_accel_factor"):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"SwarmConfig.{name} must be positive, got {value}")


@dataclass
class SimulationConfig:
    """Complete simulation configuration."""
    ship: ShipConfig = field(default_factory=ShipConfig)
    swarm: SwarmConfig = field(default_factory=SwarmConfig)
    arena_width: float = 1980.0
    arena_height: float = 1980.0
    # maximum number of swarms alive at once
    max_swarms: int = 15
    # swarms spawned by scenario helpers at startup
    init_swarms: int = 2
    # keep events in Simulation.events (callbacks fire regardless)
    record_events: bool = True
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_swarms < 1:
            raise ValueError(f"max_swarms must be >= 1, got {self.max_swarms}")
        if self.init_swarms < 0 or self.init_swarms > self.max_swarms:
            raise ValueError(
                f"init_swarms must be within 0..{self.max_swarms}, got {self.init_swarms}"
            )

    @classmethod
    def from_json(cls, path: str) -> 'SimulationConfig':
        """Load configuration from JSON file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Simulation config not found: {path}")

        with open(config_path) as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulationConfig':
        """Create configuration from dictionary."""
        if not isinstance(data, dict):
            raise ValueError("Simulation config must be a JSON object")

        ship = _build_section(ShipConfig, data.get("ship", {}), "ship")
        swarm = _build_section(SwarmConfig, data.get("swarm", {}), "swarm")

        return cls(
            ship=ship,
            swarm=swarm,
            arena_width=float(data.get("arena_width", 1980.0)),
            arena_height=float(data.get("arena_height", 1980.0)),
            max_swarms=int(data.get("max_swarms", 15)),
            init_swarms=int(data.get("init_swarms", 2)),
            record_events=bool(data.get("record_events", True)),
            seed=data.get("seed"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _build_section(section_cls: type, data: Dict[str, Any], name: str) -> Any:
    """Build a config dataclass from a dict, rejecting unknown keys."""
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' section must be an object")

    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown '{name}' config keys: {', '.join(unknown)}")

    return section_cls(**data)
