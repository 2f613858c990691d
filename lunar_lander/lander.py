"""
Descent physics: one lander from orbit to the surface.

Responsibilities:
- Maintain lander state (altitude, downward speed, total mass, clock)
- Ask a pilot for a burn rate once per 10 second turn
- Integrate each turn in closed form: series solution under thrust,
  exact zero-velocity solve on overshoot, final approach, fuel-out free fall
- Produce the touchdown result and its score

Units follow the 1969 listing: miles, seconds, pounds. The zero-velocity
solve uses the corrected form (2 x specific thrust under the square root);
the printed listing has it wrong.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from . import config as C
from .scoring import Rating, classify, fitness_score


class Phase(Enum):
    AWAITING_BURN = "awaiting_burn"
    BURNING = "burning"
    FINAL_APPROACH = "final_approach"
    FUEL_OUT = "fuel_out"
    LANDED = "landed"


@dataclass
class LanderState:
    altitude: float
    downward_speed: float
    total_mass: float
    elapsed_time: float = 0.0
    time_remaining_in_turn: float = 0.0


@dataclass(frozen=True)
class DescentResult:
    impact_speed_mph: float
    fuel_remaining: float
    elapsed_time: float
    terminal_branch: str
    score: int
    rating: Rating
    burn_history: Tuple[float, ...]
    overshoot_corrections: int = 0
    fuel_out_time: Optional[float] = None

    @property
    def survivable(self) -> bool:
        return self.rating is not Rating.FATAL


# ---------- closed-form kinematics ----------
def apply_thrust(altitude: float, downward_speed: float, total_mass: float, dt: float,
                 burn_rate: float, constants: C.DescentConstants) -> Tuple[float, float]:
    """
    Candidate (altitude, downward speed) after dt seconds at a constant burn rate.

    Mass falls linearly, so thrust acceleration grows; the log term of the
    exact solution is expanded to fifth order in q = dt * rate / mass.
    """
    g = constants.gravity
    z = constants.specific_thrust
    q = dt * burn_rate / total_mass
    q2 = q ** 2
    q3 = q ** 3
    q4 = q ** 4
    q5 = q ** 5

    velocity = downward_speed + g * dt + z * (-q - q2 / 2 - q3 / 3 - q4 / 4 - q5 / 5)
    new_altitude = (altitude - g * dt * dt / 2 - downward_speed * dt
                    + z * dt * (q / 2 + q2 / 6 + q3 / 12 + q4 / 20 + q5 / 30))
    return new_altitude, velocity


def time_to_zero_velocity(downward_speed: float, total_mass: float, burn_rate: float,
                          constants: C.DescentConstants) -> float:
    """Sub-step after which a descending, thrusting lander hovers (physically relevant root)."""
    g = constants.gravity
    z = constants.specific_thrust
    w = (1 - total_mass * g / (z * burn_rate)) / 2
    return total_mass * downward_speed / (z * burn_rate * (w + math.sqrt(w * w + downward_speed / (2 * z))))


def time_to_surface(altitude: float, downward_speed: float, total_mass: float, burn_rate: float,
                    constants: C.DescentConstants) -> float:
    """Time to zero altitude holding the current net acceleration. inf if it never gets there."""
    accel = constants.gravity - constants.specific_thrust * burn_rate / total_mass
    discriminant = max(0.0, downward_speed * downward_speed + 2 * altitude * accel)
    denominator = downward_speed + math.sqrt(discriminant)
    if denominator <= 0:
        return math.inf
    return 2 * altitude / denominator


def free_fall_time(altitude: float, downward_speed: float, gravity: float) -> float:
    return (math.sqrt(downward_speed * downward_speed + 2 * altitude * gravity) - downward_speed) / gravity


class DescentSimulator:
    """
    Runs one descent at a time. Phases:

        AWAITING_BURN -> BURNING -> (turn over) AWAITING_BURN
                         BURNING -> FINAL_APPROACH -> LANDED
                         BURNING -> FUEL_OUT -> LANDED

    A pilot is anything with `burn_rate(simulator) -> float`; it is asked once
    per turn and never below the point where the final approach begins.
    """

    def __init__(self, constants: C.DescentConstants = C.DEFAULT_CONSTANTS):
        self.constants = constants
        self.reset()

    def reset(self):
        c = self.constants
        self.state = LanderState(
            altitude=c.initial_altitude,
            downward_speed=c.initial_downward_speed,
            total_mass=c.dry_mass + c.full_tank,
        )
        self.phase = Phase.AWAITING_BURN
        self.burn_rate = 0.0
        self.burn_history: List[float] = []
        self.overshoot_corrections = 0
        self.terminal_branch: Optional[str] = None
        self.fuel_out_time: Optional[float] = None
        self.result: Optional[DescentResult] = None
        self._observer: Optional[Callable[["DescentSimulator"], None]] = None

    @property
    def fuel_remaining(self) -> float:
        return self.state.total_mass - self.constants.dry_mass

    @property
    def impact_speed_mph(self) -> float:
        return C.MPH_PER_MILE_PER_SEC * self.state.downward_speed

    def attempt_landing(self, pilot, observer: Optional[Callable[["DescentSimulator"], None]] = None) -> DescentResult:
        """Fly until touchdown. observer, if given, sees every committed sub-step and the touchdown."""
        if self.result is not None:
            return self.result

        self._observer = observer
        while self.phase is not Phase.LANDED:
            if self.phase is Phase.AWAITING_BURN:
                self._begin_turn(pilot)
            elif self.phase is Phase.BURNING:
                self._advance_turn()
            elif self.phase is Phase.FINAL_APPROACH:
                self._final_approach()
            elif self.phase is Phase.FUEL_OUT:
                self._fuel_out()
        self._observer = None
        return self.result

    # ---------- phases ----------
    def _begin_turn(self, pilot):
        rate = float(pilot.burn_rate(self))
        if self.fuel_remaining > self.constants.epsilon:
            self.burn_history.append(rate)
        self.burn_rate = rate
        self.state.time_remaining_in_turn = self.constants.turn_length
        self.phase = Phase.BURNING

    def _advance_turn(self):
        c = self.constants
        s = self.state

        if self.fuel_remaining < c.epsilon:
            self._enter(Phase.FUEL_OUT)
            return

        if s.time_remaining_in_turn < c.epsilon:
            self.phase = Phase.AWAITING_BURN
            return

        dt = self._cap_to_fuel(s.time_remaining_in_turn)
        altitude, velocity = apply_thrust(s.altitude, s.downward_speed, s.total_mass, dt, self.burn_rate, c)

        if altitude <= 0:
            self._enter(Phase.FINAL_APPROACH)
            return

        if s.downward_speed > 0 and velocity < 0:
            self._correct_overshoot()
            return

        self._commit(dt, altitude, velocity)

    def _correct_overshoot(self):
        """
        Thrust would flip the lander upward mid-step. Step exactly to the
        hover point instead; the burning phase comes back here for as long as
        the rest of the turn would still reverse, walking the crossing in.
        """
        c = self.constants
        s = self.state
        self.overshoot_corrections += 1

        dt = self._cap_to_fuel(time_to_zero_velocity(s.downward_speed, s.total_mass, self.burn_rate, c))
        altitude, velocity = apply_thrust(s.altitude, s.downward_speed, s.total_mass, dt, self.burn_rate, c)

        if altitude <= 0:
            self._enter(Phase.FINAL_APPROACH)
            return

        self._commit(dt, altitude, velocity)

    def _final_approach(self):
        # no more burn decisions from here; the last commanded rate holds to the surface
        c = self.constants
        s = self.state
        while s.altitude > 0:
            if self.burn_rate > 0 and self.fuel_remaining < c.epsilon:
                self._enter(Phase.FUEL_OUT)
                return

            dt = time_to_surface(s.altitude, s.downward_speed, s.total_mass, self.burn_rate, c)
            if not math.isfinite(dt):
                # hovering at the surface
                s.altitude = 0.0
                break

            dt = self._cap_to_fuel(dt)
            altitude, velocity = apply_thrust(s.altitude, s.downward_speed, s.total_mass, dt, self.burn_rate, c)
            self._commit(dt, altitude, velocity)

        self._land()

    def _fuel_out(self):
        s = self.state
        g = self.constants.gravity
        self.fuel_out_time = s.elapsed_time
        dt = free_fall_time(s.altitude, s.downward_speed, g)
        s.downward_speed += g * dt
        s.elapsed_time += dt
        s.altitude = 0.0
        self.burn_rate = 0.0
        self._land()

    # ---------- helpers ----------
    def _enter(self, phase: Phase):
        self.phase = phase
        self.terminal_branch = phase.value

    def _cap_to_fuel(self, dt: float) -> float:
        c = self.constants
        if self.burn_rate > 0 and c.dry_mass + dt * self.burn_rate - self.state.total_mass > 0:
            return self.fuel_remaining / self.burn_rate
        return dt

    def _commit(self, dt: float, altitude: float, velocity: float):
        s = self.state
        s.elapsed_time += dt
        s.time_remaining_in_turn -= dt
        s.total_mass = max(self.constants.dry_mass, s.total_mass - dt * self.burn_rate)
        s.altitude = altitude
        s.downward_speed = velocity
        if self._observer is not None:
            self._observer(self)

    def _land(self):
        if self.terminal_branch is None:
            self.terminal_branch = Phase.FINAL_APPROACH.value
        mph = self.impact_speed_mph
        fuel = self.fuel_remaining
        self.result = DescentResult(
            impact_speed_mph=mph,
            fuel_remaining=fuel,
            elapsed_time=self.state.elapsed_time,
            terminal_branch=self.terminal_branch,
            score=fitness_score(mph, fuel, self.constants),
            rating=classify(mph),
            burn_history=tuple(self.burn_history),
            overshoot_corrections=self.overshoot_corrections,
            fuel_out_time=self.fuel_out_time,
        )
        self.phase = Phase.LANDED
        if self._observer is not None:
            self._observer(self)
