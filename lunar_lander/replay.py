"""
Descent recorder + slow-motion playback cursor.

Responsibilities:
- Record per-sub-step state while a pilot flies one descent
- Keep the touchdown result alongside the frames
- Walk the frames on a simulated clock so uneven sub-steps play at true pace
"""
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import List, Optional

from . import config as C
from .lander import DescentResult, DescentSimulator


@dataclass
class ReplayFrame:
    time: float
    altitude: float
    downward_speed: float
    fuel: float
    burn_rate: float
    phase: str


@dataclass
class RecordedRun:
    result: DescentResult
    frames: List[ReplayFrame] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return self.frames[-1].time if self.frames else 0.0


def _frame(simulator: DescentSimulator) -> ReplayFrame:
    s = simulator.state
    return ReplayFrame(
        time=s.elapsed_time,
        altitude=max(0.0, s.altitude),
        downward_speed=s.downward_speed,
        fuel=simulator.fuel_remaining,
        burn_rate=simulator.burn_rate,
        phase=simulator.phase.value,
    )


def record_descent(pilot, constants: C.DescentConstants = C.DEFAULT_CONSTANTS) -> RecordedRun:
    simulator = DescentSimulator(constants)
    frames = [_frame(simulator)]
    result = simulator.attempt_landing(pilot, observer=lambda sim: frames.append(_frame(sim)))
    return RecordedRun(result=result, frames=frames)


class ReplayPlayer:
    """
    Each tick advances a playback clock by seconds_per_tick / slowmo_factor of
    simulated time and shows the latest frame at or before it. Finishes on the
    touchdown frame.
    """

    def __init__(self, slowmo_factor: int = C.REPLAY_SLOWMO,
                 seconds_per_tick: float = C.REPLAY_SECONDS_PER_TICK):
        self.slowmo_factor = max(1, slowmo_factor)
        self.seconds_per_tick = seconds_per_tick
        self.active = False
        self.clock = 0.0
        self._frames: List[ReplayFrame] = []
        self._times: List[float] = []
        self._shown = 0

    def start(self, run: Optional[RecordedRun]) -> bool:
        if run is None or not run.frames:
            self.active = False
            return False

        self._frames = list(run.frames)
        self._times = [f.time for f in self._frames]
        self.clock = self._times[0]
        self._shown = 0
        self.active = True
        return True

    def stop(self) -> None:
        self.active = False

    @property
    def history(self) -> List[ReplayFrame]:
        """Frames shown so far, current one included."""
        return self._frames[: self._shown + 1]

    def step(self) -> Optional[ReplayFrame]:
        if not self.active:
            return None

        self._shown = max(0, bisect_right(self._times, self.clock) - 1)
        frame = self._frames[self._shown]

        if self._shown == len(self._frames) - 1:
            self.active = False
        else:
            self.clock = min(self.clock + self.seconds_per_tick / self.slowmo_factor, self._times[-1])
        return frame
