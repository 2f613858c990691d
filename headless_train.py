"""
Headless evolutionary training for the lunar lander.

Breeds burn-rate policies over thousands of simulated descents until Ctrl-C
(or a generation cap), printing every improvement, then optionally replays
the champion's descent in a Pygame window.
"""
import argparse
import signal
import sys
import threading
from typing import Optional

from lunar_lander import config as C
from lunar_lander.agent import PolicyNetwork, set_torch_stability, suicide_burn_policy
from lunar_lander.checkpoint import load_checkpoint, save_checkpoint
from lunar_lander.metrics import GenerationSummary, RunMetrics
from lunar_lander.pilots import PolicyPilot
from lunar_lander.replay import record_descent
from lunar_lander.scoring import rating_message
from lunar_lander.trainer import EvolutionaryTrainer


def print_summary(summary: GenerationSummary) -> None:
    print(
        f"Epoch: {summary.generation} | Score: {summary.best_score} (higher is better) | "
        f"Rating: {rating_message(summary.best_impact_speed_mph)}"
    )
    print(f"Remaining fuel (LB): {summary.best_fuel_remaining_lbs:.2f} (higher is better)")
    print(f"Impact velocity (MPH): {summary.best_impact_speed_mph:.2f} (lower is better)")
    print("Burn amounts: " + ", ".join(f"{b:g}" for b in summary.best_burn_history))
    if summary.formula:
        print(summary.formula)
    print("")


def build_config(args):
    constants = C.DescentConstants(min_burn_altitude=args.min_burn_altitude)
    channels = C.ObservationChannels(
        altitude=not args.no_altitude,
        downward_speed=not args.no_speed,
        fuel=not args.no_fuel,
        elapsed_time=not args.no_time,
    )
    return constants, channels


def train(trainer: EvolutionaryTrainer, args, metrics: RunMetrics) -> Optional[int]:
    cancel = threading.Event()

    def request_stop(signum, frame):
        if not cancel.is_set():
            print("** User requested termination of simulation (finishing this generation) **")
        cancel.set()

    previous = signal.signal(signal.SIGINT, request_stop)

    def report(summary: GenerationSummary) -> None:
        print_summary(summary)
        try:
            save_checkpoint(
                trainer.champion_genome,
                trainer.best_member.policy.widths,
                trainer.channels,
                generation=summary.generation,
                score=summary.best_score,
                note=f"{summary.rating} at {summary.best_impact_speed_mph:.2f} mph",
                path=args.model_path,
            )
        except Exception as ex:
            print(f"⚠️ Failed to save checkpoint to {args.model_path}: {ex}")

    print("Running Simulation... ctrl-c to end")
    try:
        generations = trainer.run(
            cancel,
            reporter=report,
            metrics=metrics,
            max_generations=args.generations or None,
        )
    finally:
        signal.signal(signal.SIGINT, previous)
    print(f"Ran {generations} generation(s); best score {trainer.best_score}")
    return trainer.best_score


def main(argv=None):
    parser = argparse.ArgumentParser(description="Evolve a burn-rate policy for the 1969 lunar lander")
    parser.add_argument("--population", type=int, default=C.POPULATION_SIZE, help="Landers per generation")
    parser.add_argument("--generations", type=int, default=0, help="Stop after N generations (0 = until ctrl-c)")
    parser.add_argument("--hidden", type=int, default=C.HIDDEN_NEURONS, help="Hidden neurons (0 = none)")
    parser.add_argument("--min-burn-altitude", type=float, default=C.MIN_BURN_ALTITUDE_MILES, dest="min_burn_altitude",
                        help="Engines may only fire at or below this altitude (miles)")
    parser.add_argument("--random-percent", type=int, default=C.RANDOM_PERCENT, dest="random_percent",
                        help="Share of the population replaced by random networks each generation")
    parser.add_argument("--mutation-probability", type=float, default=C.MUTATION_PROBABILITY, dest="mutation_probability")
    parser.add_argument("--mutation-magnitude", type=float, default=C.MUTATION_MAGNITUDE, dest="mutation_magnitude")
    parser.add_argument("--workers", type=int, default=C.WORKERS, help="Threads evaluating landers")
    parser.add_argument("--seed", type=int, default=C.SEED, help="RNG seed for reproducible runs")
    parser.add_argument("--no-altitude", action="store_true", help="Hide altitude from the network")
    parser.add_argument("--no-speed", action="store_true", help="Hide downward speed from the network")
    parser.add_argument("--no-fuel", action="store_true", help="Hide remaining fuel from the network")
    parser.add_argument("--no-time", action="store_true", help="Hide elapsed time from the network")
    parser.add_argument("--no-formula", action="store_true", help="Don't print the policy formula")
    parser.add_argument("--model-path", type=str, default=str(C.MODEL_PATH), dest="model_path")
    parser.add_argument("--reports-dir", type=str, default=str(C.REPORTS_DIR), dest="reports_dir",
                        help="Where the CSV/JSON run reports go")
    parser.add_argument("--resume", action="store_true", help="Seed the population with the saved champion")
    parser.add_argument("--skip-train", action="store_true", help="Skip training and just fly the saved champion")
    parser.add_argument("--preset", choices=["suicide"], default=None,
                        help="Fly a hard-coded policy instead of a checkpoint (implies --skip-train)")
    parser.add_argument("--visualize", action="store_true", help="Replay the champion's descent in a window")
    parser.add_argument("--fps", type=int, default=C.FPS, help="FPS cap during visualization")
    args = parser.parse_args(argv)

    set_torch_stability()
    try:
        constants, channels = build_config(args)
        if args.preset and constants.min_burn_altitude != C.IRRECOVERABLE_ALTITUDE_MILES:
            raise C.ConfigError("The suicide preset was trained for a minimum burn altitude of 48 miles.")
        trainer = None
        if not (args.skip_train or args.preset):
            trainer = EvolutionaryTrainer(
                population_size=args.population,
                channels=channels,
                hidden_neurons=args.hidden,
                constants=constants,
                random_percent=args.random_percent,
                mutation_probability=args.mutation_probability,
                mutation_magnitude=args.mutation_magnitude,
                workers=args.workers,
                seed=args.seed,
                export_formula=not args.no_formula,
            )
        champion = suicide_burn_policy() if args.preset else PolicyNetwork(channels.count, args.hidden)
    except C.ConfigError as ex:
        print(ex)
        sys.exit(-1)

    print(f"AI INPUT: {channels.describe()} | # hidden neurons: {args.hidden} | "
          f"Minimum Altitude to Burn: {constants.min_burn_altitude:g}")
    if constants.is_suicide_burn:
        print("*** Altitude is set to SUICIDE BURN (extremely low before attempting to slow down) ***")

    if trainer is not None:
        if args.resume:
            ckpt = load_checkpoint(champion, args.model_path)
            if ckpt:
                trainer.seed_genome(champion.genome())
                print(f"Loaded champion from {args.model_path} | gen={ckpt.get('generation')} | score={ckpt.get('score')}")

        print(f"Manufacturing {trainer.population_size} lunar lander(s)...")
        metrics = RunMetrics(run_tag=C.RUN_TAG)
        try:
            train(trainer, args, metrics)
        finally:
            trainer.close()
            for path in metrics.finalize_and_export(out_dir=args.reports_dir, export_csv=C.EXPORT_CSV,
                                                    export_json=C.EXPORT_JSON):
                print(f"Exported {path}")

        if trainer.champion_genome is None:
            return
        champion.load_genome(trainer.champion_genome)
    elif not args.preset:
        ckpt = load_checkpoint(champion, args.model_path)
        if ckpt is None:
            print(f"No usable checkpoint at {args.model_path}; train first.")
            return
        print(f"Flying champion from {args.model_path} | note: {ckpt.get('note')}")

    if args.preset:
        channels = C.ObservationChannels()
    recorded = record_descent(PolicyPilot(champion, channels, constants), constants)
    result = recorded.result
    print(rating_message(result.impact_speed_mph))
    print(f"Remaining fuel (LB): {result.fuel_remaining:.2f} | Impact velocity (MPH): {result.impact_speed_mph:.2f}")

    if args.visualize:
        from lunar_lander.game_loop import run

        run(recorded, fps=args.fps, constants=constants)
    else:
        print("Visualization skipped. Use --visualize to watch the descent.")


if __name__ == "__main__":
    main()
