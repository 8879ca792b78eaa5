#!/usr/bin/env python3
"""
Swarm Simulation Engine.

Owns every swarm and the arena and advances the world one tick at a time
through a fixed phase pipeline:

1. Decide   - every swarm decides from the same frozen world state
2. Apply    - decisions are written back (re-targeting, formation rotation)
3. Move     - every ship advances its kinematics
4. Fight    - each swarm runs the lock-on protocol against visible enemies
5. Damage   - all hits of the tick are applied in one pass
6. Finalize - dead ships are dropped, centroids recomputed
7. Cleanup  - empty swarms are removed

Deciding for all swarms before applying any decision keeps the outcome
independent of swarm order.

The simulation produces an event log (and event callbacks) for recording,
replay and analysis.
"""

from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional

from .bounds import Bounds
from .config import SimulationConfig
from .physics import Vector2D
from .ship import Ship
from .swarm import DecisionMode, Swarm, SwarmDecision


# =============================================================================
# EVENT TYPES
# =============================================================================

class SimulationEventType(Enum):
    """Types of events that can occur during simulation."""
    # Battle flow events
    SIMULATION_STARTED = auto()
    SIMULATION_ENDED = auto()

    # Swarm lifecycle
    SWARM_SPAWNED = auto()
    SWARM_DESTROYED = auto()

    # Decision events
    DECISION_FLEE = auto()
    DECISION_CHASE = auto()
    TARGET_OVERRIDDEN = auto()

    # Combat events
    LOCK_ACQUIRED = auto()
    SHOT_FIRED = auto()
    SHIP_DAMAGED = auto()
    SHIP_DESTROYED = auto()


# =============================================================================
# SIMULATION EVENT
# =============================================================================

@dataclass
class SimulationEvent:
    """
    An event that occurs during simulation.

    Attributes:
        event_type: The type of event.
        tick: Simulation tick when the event occurred.
        swarm_index: Index of the swarm involved (if applicable), as of
                     the moment the event was logged.
        ship_id: ID of the ship involved (if applicable).
        target_id: ID of the target ship (if applicable).
        data: Additional event-specific data.
    """
    event_type: SimulationEventType
    tick: int
    swarm_index: Optional[int] = None
    ship_id: Optional[int] = None
    target_id: Optional[int] = None
    data: dict = field(default_factory=dict)

    def __str__(self) -> str:
        swarm_str = f"[swarm {self.swarm_index}]" if self.swarm_index is not None else ""
        ship_str = f"[ship {self.ship_id}]" if self.ship_id is not None else ""
        target_str = f" -> {self.target_id}" if self.target_id is not None else ""
        return f"T+{self.tick} {swarm_str}{ship_str} {self.event_type.name}{target_str}"

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type.name,
            "tick": self.tick,
            "swarm_index": self.swarm_index,
            "ship_id": self.ship_id,
            "target_id": self.target_id,
            "data": self.data,
        }


# =============================================================================
# SIMULATION
# =============================================================================

class Simulation:
    """
    Main swarm simulation engine.

    Usage:
        sim = Simulation(SimulationConfig())
        sim.spawn_swarm(Vector2D(400, 400), 30)
        sim.spawn_swarm(Vector2D(500, 420), 5)
        sim.run(ticks=600)

    Attributes:
        config: Simulation configuration.
        tick: Number of completed ticks.
        events: Recorded events (when config.record_events is set).
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        bounds: Optional[Bounds] = None
    ) -> None:
        """
        Initialize the simulation.

        Args:
            config: Simulation configuration (defaults if omitted).
            bounds: Arena bounds; built from config.arena_width/height
                    when omitted.
        """
        self.config = config or SimulationConfig()
        self._bounds = bounds or Bounds.from_size(
            self.config.arena_width, self.config.arena_height
        )
        self._swarms: list[Swarm] = []

        self.tick: int = 0
        self.rng = random.Random(self.config.seed)

        # Event log
        self.events: list[SimulationEvent] = []
        self._tick_events: list[SimulationEvent] = []
        self._event_callbacks: list[Callable[[SimulationEvent], None]] = []
        # Called with the simulation after every completed tick
        self._tick_callbacks: list[Callable[[Simulation], None]] = []

        self._running = False

    # -------------------------------------------------------------------------
    # Swarm Management
    # -------------------------------------------------------------------------

    def swarms(self) -> tuple[Swarm, ...]:
        """Read-only ordered view of the live swarms."""
        return tuple(self._swarms)

    def bounds(self) -> Bounds:
        return self._bounds

    def spawn_swarm(self, position: Vector2D, ship_count: int) -> int:
        """
        Spawn a swarm at position (clamped into the arena).

        Args:
            position: Spawn point.
            ship_count: Number of ships (capped at swarm max_ships).

        Returns:
            Index of the new swarm in swarms().

        Raises:
            ValueError: If the swarm limit is reached or ship_count < 1.
        """
        if len(self._swarms) >= self.config.max_swarms:
            raise ValueError(
                f"Swarm limit reached ({self.config.max_swarms})"
            )

        swarm = Swarm.spawn(
            self._bounds.clamp(position),
            ship_count,
            self.config.swarm,
            self.config.ship
        )
        self._swarms.append(swarm)
        index = len(self._swarms) - 1

        self._log_event(SimulationEventType.SWARM_SPAWNED, swarm_index=index, data={
            'position': list(swarm.center.to_tuple()),
            'ship_count': swarm.ship_count
        })
        return index

    def get_swarm(self, index: int) -> Swarm:
        return self._swarms[index]

    def override_target(self, index: int, pos: Vector2D) -> None:
        """
        Manually set a swarm's target.

        The AI decision for that swarm is skipped on the next tick only.
        """
        self._swarms[index].override_target(pos)
        self._log_event(SimulationEventType.TARGET_OVERRIDDEN, swarm_index=index, data={
            'target': list(pos.to_tuple())
        })

    def swarms_in_range(self, index: int) -> list[Swarm]:
        """
        Other swarms within vision range of swarm index, nearest first.

        The swarm itself is never included; equal distances keep swarm order.
        """
        swarm = self._swarms[index]
        vision_sq = swarm.config.vision_range ** 2

        in_range = []
        for i, other in enumerate(self._swarms):
            if i == index:
                continue
            dist_sq = swarm.center.distance_squared_to(other.center)
            if dist_sq <= vision_sq:
                in_range.append((dist_sq, i, other))

        in_range.sort(key=lambda item: (item[0], item[1]))
        return [other for _, _, other in in_range]

    @property
    def ship_count(self) -> int:
        return sum(s.ship_count for s in self._swarms)

    # -------------------------------------------------------------------------
    # Main Loop
    # -------------------------------------------------------------------------

    def run(self, ticks: int, stop_when_decided: bool = True) -> int:
        """
        Run the simulation for up to ticks steps.

        Args:
            ticks: Maximum number of ticks.
            stop_when_decided: Stop early once at most one swarm remains.

        Returns:
            Number of ticks executed.
        """
        self._running = True
        self._log_event(SimulationEventType.SIMULATION_STARTED, data={
            'swarms': len(self._swarms),
            'ships': self.ship_count
        })

        executed = 0
        while self._running and executed < ticks:
            self.step()
            executed += 1
            if stop_when_decided and len(self._swarms) <= 1:
                self._running = False

        self._running = False
        self._log_event(SimulationEventType.SIMULATION_ENDED, data={
            'ticks': executed,
            'swarms_remaining': len(self._swarms),
            'ships_remaining': self.ship_count
        })
        return executed

    def stop(self) -> None:
        """Stop a running simulation after the current tick."""
        self._running = False

    def step(self) -> list[SimulationEvent]:
        """
        Execute a single simulation tick.

        Returns:
            List of events that occurred during this tick.
        """
        self._tick_events = []

        decisions = self._decide()
        self._apply(decisions)
        self._move()
        hits = self._fight()
        self._apply_damage(hits)
        self._finalize()
        self._cleanup()

        self.tick += 1

        for callback in list(self._tick_callbacks):
            callback(self)

        return self._tick_events

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def _decide(self) -> list[Optional[SwarmDecision]]:
        """Every swarm decides from the same, unmodified world state."""
        return [
            swarm.decide(self.swarms_in_range(i), self._bounds)
            for i, swarm in enumerate(self._swarms)
        ]

    def _apply(self, decisions: list[Optional[SwarmDecision]]) -> None:
        for i, (swarm, decision) in enumerate(zip(self._swarms, decisions)):
            if swarm.manual_override:
                swarm.manual_override = False
                continue
            if decision is None:
                continue

            swarm.apply_decision(decision)

            event_type = (SimulationEventType.DECISION_FLEE
                          if decision.mode is DecisionMode.FLEE
                          else SimulationEventType.DECISION_CHASE)
            self._log_event(event_type, swarm_index=i, data={
                'target': list(decision.target.to_tuple())
            })

    def _move(self) -> None:
        for swarm in self._swarms:
            swarm.move()

    def _fight(self) -> Counter[int]:
        """
        Run the lock-on protocol for every swarm.

        Each swarm is mutated in turn while its visible enemies are only read.
        """
        hits: Counter[int] = Counter()

        for i, swarm in enumerate(self._swarms):
            enemies: list[Ship] = [
                ship
                for other in self.swarms_in_range(i)
                for ship in other.ships
            ]
            hits.update(swarm.fight(enemies))

            for ship in swarm.ships:
                if ship.fired_target is not None:
                    self._log_event(SimulationEventType.SHOT_FIRED, swarm_index=i,
                                    ship_id=ship.id, target_id=ship.fired_target)
                if ship.lock_acquired:
                    self._log_event(SimulationEventType.LOCK_ACQUIRED, swarm_index=i,
                                    ship_id=ship.id, target_id=ship.lock_target)

        return hits

    def _apply_damage(self, hits: Counter[int]) -> None:
        """Apply every hit of the tick; one health point per hit."""
        if not hits:
            return

        for i, swarm in enumerate(self._swarms):
            for ship in swarm.ships:
                count = hits.get(ship.id, 0)
                if count == 0:
                    continue
                remaining = ship.take_hit(count)
                self._log_event(SimulationEventType.SHIP_DAMAGED, swarm_index=i,
                                ship_id=ship.id, data={
                                    'hits': count,
                                    'health': remaining
                                })

    def _finalize(self) -> None:
        for i, swarm in enumerate(self._swarms):
            for ship in swarm.finalize():
                self._log_event(SimulationEventType.SHIP_DESTROYED, swarm_index=i,
                                ship_id=ship.id, data={
                                    'position': list(ship.pos.to_tuple())
                                })

    def _cleanup(self) -> None:
        survivors = []
        for i, swarm in enumerate(self._swarms):
            if swarm.is_empty:
                self._log_event(SimulationEventType.SWARM_DESTROYED, swarm_index=i, data={
                    'position': list(swarm.center.to_tuple())
                })
            else:
                survivors.append(swarm)
        self._swarms = survivors

    # -------------------------------------------------------------------------
    # Event Logging
    # -------------------------------------------------------------------------

    def add_event_callback(self, callback: Callable[[SimulationEvent], None]) -> None:
        """
        Register a callback to be called for each simulation event.

        Args:
            callback: Function that takes a SimulationEvent.
        """
        self._event_callbacks.append(callback)

    def remove_event_callback(self, callback: Callable[[SimulationEvent], None]) -> None:
        """Remove an event callback."""
        if callback in self._event_callbacks:
            self._event_callbacks.remove(callback)

    def add_tick_callback(self, callback: Callable[[Simulation], None]) -> None:
        """Register a callback run with the simulation after every tick."""
        self._tick_callbacks.append(callback)

    def remove_tick_callback(self, callback: Callable[[Simulation], None]) -> None:
        """Remove a tick callback."""
        if callback in self._tick_callbacks:
            self._tick_callbacks.remove(callback)

    def _log_event(
        self,
        event_type: SimulationEventType,
        swarm_index: Optional[int] = None,
        ship_id: Optional[int] = None,
        target_id: Optional[int] = None,
        data: Optional[dict] = None
    ) -> SimulationEvent:
        """Log a simulation event and notify callbacks."""
        event = SimulationEvent(
            event_type=event_type,
            tick=self.tick,
            swarm_index=swarm_index,
            ship_id=ship_id,
            target_id=target_id,
            data=data or {}
        )
        if self.config.record_events:
            self.events.append(event)
        self._tick_events.append(event)

        for callback in list(self._event_callbacks):
            try:
                callback(event)
            except Exception as e:
                print(f"[SIM] Event callback error: {e}")

        return event

    def get_events_since(self, since_tick: int) -> list[SimulationEvent]:
        """Get all events at or after a tick."""
        return [e for e in self.events if e.tick >= since_tick]

    def get_events_by_type(self, event_type: SimulationEventType) -> list[SimulationEvent]:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    # -------------------------------------------------------------------------
    # State Snapshot
    # -------------------------------------------------------------------------

    def get_snapshot(self) -> dict:
        """JSON-serialisable view of the current world state."""
        return {
            'tick': self.tick,
            'bounds': self._bounds.to_dict(),
            'swarms': [swarm.to_dict() for swarm in self._swarms],
        }
