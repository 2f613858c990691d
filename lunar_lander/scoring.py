"""
Touchdown outcome classification and the fitness score the trainer ranks by.

The rating bands are the 1969 ones and double as acceptance thresholds in the
tests. The fitness score is separate: softness dominates, leftover fuel only
breaks ties, and a crash never earns anything for the fuel it carried down.
"""
from enum import IntEnum

from . import config as C


class Rating(IntEnum):
    PERFECT = 0
    GOOD = 1
    POOR = 2
    DAMAGED = 3
    CRASH_SURVIVABLE = 4
    FATAL = 5

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


_BANDS = (
    (C.PERFECT_MPH, Rating.PERFECT),
    (C.GOOD_MPH, Rating.GOOD),
    (C.POOR_MPH, Rating.POOR),
    (C.DAMAGED_MPH, Rating.DAMAGED),
    (C.CRASH_SURVIVABLE_MPH, Rating.CRASH_SURVIVABLE),
)

_MESSAGES = {
    Rating.PERFECT: "PERFECT LANDING !-(LUCKY)",
    Rating.GOOD: "GOOD LANDING-(COULD BE BETTER)",
    Rating.POOR: "CONGRATULATIONS ON A POOR LANDING",
    Rating.DAMAGED: "CRAFT DAMAGE. GOOD LUCK",
    Rating.CRASH_SURVIVABLE: "CRASH LANDING-YOU'VE 5 HRS OXYGEN",
    Rating.FATAL: "SORRY,BUT THERE WERE NO SURVIVORS-YOU BLEW IT!",
}


def classify(impact_mph: float) -> Rating:
    for upper, rating in _BANDS:
        if impact_mph <= upper:
            return rating
    return Rating.FATAL


def rating_message(impact_mph: float) -> str:
    rating = classify(impact_mph)
    message = _MESSAGES[rating]
    if rating is Rating.FATAL:
        message += f"\nIN FACT YOU BLASTED A NEW LUNAR CRATER {impact_mph * C.CRATER_FEET_PER_MPH:8.2f} FT. DEEP"
    return message


def fitness_score(impact_mph: float, fuel_remaining: float,
                  constants: C.DescentConstants = C.DEFAULT_CONSTANTS) -> int:
    """
    Higher is better. 40 mph scores 0, a 0 mph touchdown 4,000,000, plus up to
    100 points of fuel. A non-positive base subtracts the fuel points instead.
    """
    # softer than acceptable earns nothing extra, leaving fuel as the objective
    if 0 <= impact_mph < constants.acceptable_impact_mph:
        impact_mph = constants.acceptable_impact_mph

    score = (C.SPEED_CEILING_MPH - impact_mph) * C.SCORE_MULTIPLIER
    bonus = int(fuel_remaining / constants.full_tank * C.FUEL_BONUS_POINTS)
    score += -bonus if score <= 0 else bonus
    return int(score)
