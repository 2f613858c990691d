"""
Manual control channel: the 1969 teletype game.

Responsibilities:
- print the radar line each turn and prompt for the fuel rate K
- reject anything but 0 or min..max and re-prompt, leaving the lander untouched
- report the touchdown and offer another go
"""
import math
from typing import Callable

from . import config as C
from .lander import DescentSimulator
from .pilots import is_valid_manual_burn
from .scoring import rating_message

BANNER = (
    "CONTROL CALLING LUNAR MODULE. MANUAL CONTROL IS NECESSARY\n"
    "YOU MAY RESET FUEL RATE K EACH 10 SECS TO 0 OR ANY VALUE\n"
    "BETWEEN {min_burn:g} & {max_burn:g} LBS/SEC. YOU'VE {fuel:g} LBS FUEL. ESTIMATED\n"
    "FREE FALL IMPACT TIME-120 SECS. CAPSULE WEIGHT-{mass:g} LBS\n\n"
)
HEADER = "TIME,SECS   ALTITUDE,MILES+FEET   VELOCITY,MPH   FUEL,LBS   FUEL RATE"


def radar_line(simulator: DescentSimulator) -> str:
    s = simulator.state
    miles = math.trunc(s.altitude)
    feet = 5280 * (s.altitude - miles)
    return (
        f"{s.elapsed_time:7.0f}{miles:16.0f}{feet:7.0f}"
        f"{simulator.impact_speed_mph:15.2f}{simulator.fuel_remaining:12.1f}     "
    )


def parse_burn(text):
    try:
        return float(text)
    except (TypeError, ValueError):
        return None


class ManualPilot:
    """Asks a human for K every turn."""

    def __init__(self, read_line: Callable[[], str] = input, write: Callable[[str], None] = print,
                 constants: C.DescentConstants = C.DEFAULT_CONSTANTS):
        self.read_line = read_line
        self.write = write
        self.constants = constants

    def burn_rate(self, simulator) -> float:
        self.write(radar_line(simulator))
        while True:
            self.write("K=:")
            rate = parse_burn(self.read_line())
            if rate is not None and is_valid_manual_burn(rate, self.constants):
                return rate
            self.write("NOT POSSIBLE" + "." * 51)


def ask_yes_no(read_line: Callable[[], str] = input, write: Callable[[str], None] = print) -> bool:
    while True:
        write("(ANS. YES OR NO):")
        answer = (read_line() or "").strip().lower()
        if answer in ("yes", "y"):
            return True
        if answer in ("no", "n"):
            return False


def fly_once(pilot: ManualPilot, constants: C.DescentConstants = C.DEFAULT_CONSTANTS):
    write = pilot.write
    write("FIRST RADAR CHECK COMING UP\n\n")
    write("COMMENCE LANDING PROCEDURE")
    write(HEADER)

    simulator = DescentSimulator(constants)
    result = simulator.attempt_landing(pilot)

    if result.terminal_branch == "fuel_out":
        write(f"FUEL OUT AT {result.fuel_out_time:8.2f} SECS")
    write(f"ON THE MOON AT {result.elapsed_time:8.6f} SECS")
    write(f"IMPACT VELOCITY OF {result.impact_speed_mph:8.6f} M.P.H.")
    write(f"FUEL LEFT: {result.fuel_remaining:8.6f} LBS")
    write(rating_message(result.impact_speed_mph))
    return result


def play(read_line: Callable[[], str] = input, write: Callable[[str], None] = print,
         constants: C.DescentConstants = C.DEFAULT_CONSTANTS) -> None:
    write(BANNER.format(
        min_burn=constants.min_burn,
        max_burn=constants.max_burn,
        fuel=constants.full_tank,
        mass=constants.dry_mass + constants.full_tank,
    ))
    pilot = ManualPilot(read_line, write, constants)
    while True:
        fly_once(pilot, constants)
        write("\n\n\nTRY AGAIN?")
        if not ask_yes_no(read_line, write):
            break
    write("CONTROL OUT\n\n")
