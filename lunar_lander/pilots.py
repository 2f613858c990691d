"""
Burn-rate sources for the simulator.

Responsibilities:
- legal burn-rate rules: clamp for the network, accept/reject for humans
- observation vector for the network (only the enabled channels)
- PolicyPilot (network) and ScriptedPilot (replays a recorded burn history)
"""
import math
from typing import Sequence

import numpy as np

from . import config as C
from .agent import PolicyNetwork


def clamp_policy_burn(rate: float, constants: C.DescentConstants = C.DEFAULT_CONSTANTS) -> float:
    # engine won't light below min burn; negative tanh output lands here too
    if rate < constants.min_burn:
        return 0.0
    if rate > constants.max_burn:
        return constants.max_burn
    return rate


def is_valid_manual_burn(rate: float, constants: C.DescentConstants = C.DEFAULT_CONSTANTS) -> bool:
    if math.isnan(rate):
        return False
    return rate == 0 or constants.min_burn <= rate <= constants.max_burn


def observe(simulator, channels: C.ObservationChannels) -> np.ndarray:
    s = simulator.state
    values = []
    if channels.altitude:
        values.append(s.altitude / C.ALTITUDE_SCALE)
    if channels.downward_speed:
        values.append(s.downward_speed)
    if channels.fuel:
        values.append(simulator.fuel_remaining / simulator.constants.full_tank)
    if channels.elapsed_time:
        values.append(s.elapsed_time / C.ELAPSED_TIME_SCALE)
    return np.array(values, dtype=np.float64)


class PolicyPilot:
    """Flies with a PolicyNetwork. Holds the engine off until the burn altitude is reached."""

    def __init__(self, policy: PolicyNetwork, channels: C.ObservationChannels = C.DEFAULT_CHANNELS,
                 constants: C.DescentConstants = C.DEFAULT_CONSTANTS):
        if policy.input_size != channels.count:
            raise C.ConfigError(
                f"Network takes {policy.input_size} inputs but {channels.count} observation channels are enabled"
            )
        self.policy = policy
        self.channels = channels
        self.constants = constants

    def burn_rate(self, simulator) -> float:
        if simulator.state.altitude > self.constants.min_burn_altitude:
            return 0.0

        intent = self.policy.evaluate(observe(simulator, self.channels))
        return clamp_policy_burn(intent * self.constants.max_burn, self.constants)


class ScriptedPilot:
    """Replays a burn history turn by turn, then coasts. Call reset() before flying it again."""

    def __init__(self, burns: Sequence[float]):
        self.burns = list(burns)
        self._turn = 0

    def burn_rate(self, simulator) -> float:
        if self._turn >= len(self.burns):
            return 0.0
        rate = self.burns[self._turn]
        self._turn += 1
        return rate

    def reset(self) -> None:
        self._turn = 0
