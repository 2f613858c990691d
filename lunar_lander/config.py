"""
Central configuration for physics, policy network, evolution, and reporting.

Keep ALL constants here so tuning doesn't require hunting through code.
The frozen dataclasses at the bottom bundle the constants that must be fixed
when a simulator or network is built, and validate them up front.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

# Physics (moon, 1969 Storer units: miles, seconds, pounds)
GRAVITY = 0.001                      # mi/s^2
DRY_MASS_LBS = 16500.0               # capsule without fuel
SPECIFIC_THRUST = 1.8                # thrust per lb of fuel burned
FULL_TANK_LBS = 16000.0
TURN_LENGTH_SEC = 10.0
MIN_BURN = 8.0                       # lbs/sec, engine won't light below this
MAX_BURN = 200.0
EPSILON = 0.001

INITIAL_ALTITUDE_MILES = 120.0
INITIAL_DOWNWARD_SPEED = 1.0         # mi/s

# Burning is only permitted at or below this altitude. 130 is comfortable,
# 48 is a suicide burn. Below 48 a solid 200 lb/s burn cannot arrest the fall.
MIN_BURN_ALTITUDE_MILES = 48.0
IRRECOVERABLE_ALTITUDE_MILES = 48.0
SUICIDE_BURN_BELOW_MILES = 50.0

MPH_PER_MILE_PER_SEC = 3600.0
CRATER_FEET_PER_MPH = 0.277777

# Scoring
SPEED_CEILING_MPH = 40.0             # no credit for landings at or above this
SCORE_MULTIPLIER = 100_000           # keeps fuel from ever outweighing softness
FUEL_BONUS_POINTS = 100              # full tank left = 100 points
ACCEPTABLE_IMPACT_MPH = 0.0          # >0 stops rewarding softness, so fuel wins

# Outcome thresholds (mph, inclusive upper bound)
PERFECT_MPH = 1.0
GOOD_MPH = 10.0
POOR_MPH = 22.0
DAMAGED_MPH = 40.0
CRASH_SURVIVABLE_MPH = 60.0

# Network inputs
USE_ALTITUDE_INPUT = True
USE_DOWNWARD_SPEED_INPUT = True
USE_FUEL_INPUT = True
USE_ELAPSED_TIME_INPUT = True
ALTITUDE_SCALE = 150.0
ELAPSED_TIME_SCALE = 200.0

HIDDEN_NEURONS = 0                   # 0 = single affine map through tanh
INIT_WEIGHT_RANGE = 0.5

# Evolution
POPULATION_SIZE = 1000
RANDOM_PERCENT = 10                  # 75% learns really slowly
MUTATION_PROBABILITY = 0.25
MUTATION_MAGNITUDE = 0.5
WORKERS = 8
SEED = None

# Model persistence
MODEL_PATH = Path("lunar_lander_champion.pt")

# Reports
RUN_TAG = ""
REPORTS_DIR = Path("reports")
EXPORT_CSV = True
EXPORT_JSON = True

# Visualisation
WIDTH, HEIGHT = 420, 600
PANEL_WIDTH = 260
WINDOW_WIDTH = WIDTH + PANEL_WIDTH
PANEL_PADDING = 10
FPS = 30
REPLAY_SLOWMO = 2
REPLAY_SECONDS_PER_TICK = 2.0        # simulated seconds per rendered frame before slow-mo
SURFACE_MARGIN = 60                  # pixels of ground below the column


class ConfigError(ValueError):
    """Configuration that would make a descent or a training run meaningless."""


@dataclass(frozen=True)
class DescentConstants:
    gravity: float = GRAVITY
    dry_mass: float = DRY_MASS_LBS
    specific_thrust: float = SPECIFIC_THRUST
    full_tank: float = FULL_TANK_LBS
    turn_length: float = TURN_LENGTH_SEC
    min_burn: float = MIN_BURN
    max_burn: float = MAX_BURN
    min_burn_altitude: float = MIN_BURN_ALTITUDE_MILES
    initial_altitude: float = INITIAL_ALTITUDE_MILES
    initial_downward_speed: float = INITIAL_DOWNWARD_SPEED
    epsilon: float = EPSILON
    acceptable_impact_mph: float = ACCEPTABLE_IMPACT_MPH

    def __post_init__(self):
        if self.min_burn_altitude < IRRECOVERABLE_ALTITUDE_MILES:
            raise ConfigError(
                f"Minimum altitude to burn fuel must be {IRRECOVERABLE_ALTITUDE_MILES:g} miles or higher "
                f"(got {self.min_burn_altitude:g}); even a {self.max_burn:g} lb/s burn would make a crater."
            )
        if not 0 < self.min_burn <= self.max_burn:
            raise ConfigError(f"Burn bounds must satisfy 0 < min <= max (got {self.min_burn:g}, {self.max_burn:g})")
        if self.gravity <= 0 or self.specific_thrust <= 0 or self.turn_length <= 0:
            raise ConfigError("Gravity, specific thrust and turn length must be positive")
        if self.dry_mass <= 0 or self.full_tank <= 0:
            raise ConfigError(
                f"Dry mass and full tank must be positive (got {self.dry_mass:g}, {self.full_tank:g})"
            )

    @property
    def is_suicide_burn(self) -> bool:
        return self.min_burn_altitude < SUICIDE_BURN_BELOW_MILES


@dataclass(frozen=True)
class ObservationChannels:
    altitude: bool = USE_ALTITUDE_INPUT
    downward_speed: bool = USE_DOWNWARD_SPEED_INPUT
    fuel: bool = USE_FUEL_INPUT
    elapsed_time: bool = USE_ELAPSED_TIME_INPUT

    def __post_init__(self):
        if self.count == 0:
            raise ConfigError("No inputs to the neural network. Please enable at least one observation channel.")

    def _flags(self) -> List[Tuple[bool, str]]:
        return [
            (self.altitude, f"(AltitudeInMiles/{ALTITUDE_SCALE:g})"),
            (self.downward_speed, "DownwardSpeedInMilesPerSecond"),
            (self.fuel, "(FuelRemainingLBs/WeightOfFullTankOfFuelLBs)"),
            (self.elapsed_time, f"(ElapsedTimeInSeconds/{ELAPSED_TIME_SCALE:g})"),
        ]

    @property
    def count(self) -> int:
        return sum(1 for enabled, _ in self._flags() if enabled)

    @property
    def names(self) -> List[str]:
        """Readable input names, in network input order."""
        return [name for enabled, name in self._flags() if enabled]

    def describe(self) -> str:
        return (
            f"Altitude: {self.altitude}, Downward Speed: {self.downward_speed}, "
            f"Fuel Remaining: {self.fuel}, Elapsed Time: {self.elapsed_time}"
        )


DEFAULT_CONSTANTS = DescentConstants()
DEFAULT_CHANNELS = ObservationChannels()
