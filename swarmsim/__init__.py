"""Swarm-vs-swarm combat simulation package."""

from .physics import (
    EPSILON,
    Vector2D,
    angle_diff,
    wrap_angle,
)

from .bounds import Bounds

from .repulsion import (
    NUM_ANGLES,
    MAX_WALL_WEIGHT,
    RepulsionMap,
)

from .config import (
    ShipConfig,
    SwarmConfig,
    SimulationConfig,
)

from .ship import Ship, max_safe_speed

from .swarm import (
    DecisionMode,
    SwarmDecision,
    SwarmMember,
    Swarm,
)

from .simulation import (
    SimulationEventType,
    SimulationEvent,
    Simulation,
)

from .recorder import (
    SimulationRecording,
    SimulationRecorder,
)

__all__ = [
    # Physics module
    "EPSILON",
    "Vector2D",
    "angle_diff",
    "wrap_angle",
    # Arena
    "Bounds",
    # Repulsion module
    "NUM_ANGLES",
    "MAX_WALL_WEIGHT",
    "RepulsionMap",
    # Config module
    "ShipConfig",
    "SwarmConfig",
    "SimulationConfig",
    # Ship module
    "Ship",
    "max_safe_speed",
    # Swarm module
    "DecisionMode",
    "SwarmDecision",
    "SwarmMember",
    "Swarm",
    # Simulation module
    "SimulationEventType",
    "SimulationEvent",
    "Simulation",
    # Recorder module
    "SimulationRecording",
    "SimulationRecorder",
]
