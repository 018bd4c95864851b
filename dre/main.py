"""
Command-line interface for the dice resolution engine.

Resolve actions, preview odds, recommend difficulties and cross-check the
analytic odds against Monte Carlo runs, reading action contexts from JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from dre.config import EngineConfig, build_engine
from dre.data_models import ActionContext, ActionType
from dre.narrative.output import format_outcome
from dre.observability.replay import ReplaySession
from dre.preview.odds import empirical_odds, preview_odds, recommend_difficulty
from dre.resolution.actions import get_profile
from dre.resolution.engine import ResolutionEngine


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# ARGUMENTS
# =============================================================================

def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    action_choices = [a.value for a in ActionType]

    parser = argparse.ArgumentParser(
        prog="dre",
        description="Dice resolution engine - deterministic action resolution and odds preview",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dre resolve mining --seed run-1 --context ctx.json   # Resolve one action
  dre preview derelict --context ctx.json              # Analytic odds
  dre recommend away_team --target 70                  # Balance a difficulty
  dre simulate combat_attack --runs 20000              # Preview vs Monte Carlo
  dre replay session.json                              # Re-check a recorded session
        """
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Engine configuration JSON file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON instead of text",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def add_action_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("action", choices=action_choices, help="Action type")
        p.add_argument("--context", type=Path, help="ActionContext JSON file (default: empty context)")
        p.add_argument(
            "--difficulty", type=str,
            help="Override the context's difficulty label (not accepted for combat_initiate, "
                 "combat_attack, combat_flee or combat_repair, whose targets come from the encounter)",
        )

    resolve_p = sub.add_parser("resolve", help="Resolve one action")
    add_action_args(resolve_p)
    resolve_p.add_argument("--seed", type=str, default="", help="Seed text (default: empty)")
    resolve_p.add_argument("--save-log", type=Path, help="Save the run log to this file")

    preview_p = sub.add_parser("preview", help="Preview tier probabilities without rolling")
    add_action_args(preview_p)

    recommend_p = sub.add_parser("recommend", help="Recommend a difficulty label for a success chance")
    add_action_args(recommend_p)
    recommend_p.add_argument("--target", type=float, default=65, help="Desired success chance in percent (default: 65)")

    simulate_p = sub.add_parser("simulate", help="Compare the preview with Monte Carlo resolution")
    add_action_args(simulate_p)
    simulate_p.add_argument("--runs", type=int, default=10_000, help="Number of resolutions (default: 10000)")
    simulate_p.add_argument("--seed-prefix", type=str, default="sim", help="Seed prefix (default: sim)")

    replay_p = sub.add_parser("replay", help="Replay a saved run log and report divergences")
    replay_p.add_argument("log_file", type=Path, help="Run log JSON file")

    args = parser.parse_args(argv)
    if getattr(args, "difficulty", None) and not get_profile(args.action).uses_difficulty:
        parser.error(f"--difficulty does not apply to {args.action}; its target comes from the encounter")
    return args


def create_config_from_args(args: argparse.Namespace) -> EngineConfig:
    """Create EngineConfig from parsed arguments."""
    config = EngineConfig.from_file(args.config) if args.config else EngineConfig()
    config.verbose = config.verbose or args.verbose
    if getattr(args, "save_log", None):
        config.record_run_log = True
    return config


def load_context(args: argparse.Namespace) -> ActionContext:
    data: dict[str, Any] = {}
    if args.context:
        with open(args.context, "r", encoding="utf-8") as f:
            data = json.load(f)
    context = ActionContext.from_dict(data)
    if args.difficulty:
        context.difficulty = args.difficulty
        if context.mission is not None:
            context.mission.difficulty = args.difficulty
    return context


# =============================================================================
# COMMANDS
# =============================================================================

def _emit(args: argparse.Namespace, data: dict[str, Any], text: str) -> None:
    if args.json:
        print(json.dumps(data, indent=2, default=str))
    else:
        print(text)


def cmd_resolve(args: argparse.Namespace, engine: ResolutionEngine) -> int:
    outcome = engine.resolve(args.action, load_context(args), args.seed)
    output = format_outcome(outcome)
    _emit(args, {"outcome": outcome.to_dict(), "display": output.to_dict()}, output.render())
    if args.save_log and engine.run_log is not None:
        engine.run_log.save(str(args.save_log))
    return 0


def cmd_preview(args: argparse.Namespace, engine: ResolutionEngine) -> int:
    odds = preview_odds(args.action, load_context(args), engine)
    lines = [
        f"{odds.action_type.value}: target {odds.target_difficulty:g}, modifiers {odds.modifier_total:+d}",
        odds.summary,
    ]
    for tier, percent in odds.probabilities.items():
        lines.append(f"  {tier:<17} {percent:6.2f}%")
    _emit(args, odds.to_dict(), "\n".join(lines))
    return 0


def cmd_recommend(args: argparse.Namespace, engine: ResolutionEngine) -> int:
    rec = recommend_difficulty(args.action, load_context(args), args.target, engine)
    lines = [f"Recommended: {rec.recommended} ({rec.expected_success_chance:g}% vs target {rec.target_success_chance:g}%)"]
    for label, odds, delta in rec.options:
        lines.append(f"  {label:<11} {odds.success_chance:6.2f}%  (off by {delta:g})")
    data = {
        "recommended": rec.recommended,
        "expected_success_chance": rec.expected_success_chance,
        "target_success_chance": rec.target_success_chance,
        "options": {label: odds.success_chance for label, odds, _ in rec.options},
    }
    _emit(args, data, "\n".join(lines))
    return 0


def cmd_simulate(args: argparse.Namespace, engine: ResolutionEngine) -> int:
    context = load_context(args)
    odds = preview_odds(args.action, context, engine)
    observed = empirical_odds(args.action, context, args.runs, args.seed_prefix, engine)

    lines = [f"{args.action}: {args.runs} resolutions", f"  {'tier':<17} {'preview':>8} {'observed':>9}"]
    for tier, percent in odds.probabilities.items():
        lines.append(f"  {tier:<17} {percent:7.2f}% {observed[tier]:8.2f}%")
    drift = observed["success_chance"] - odds.success_chance
    lines.append(f"  success chance drift: {drift:+.2f} points")
    _emit(args, {"preview": odds.probabilities, "observed": observed, "drift": drift}, "\n".join(lines))
    return 0


def cmd_replay(args: argparse.Namespace, engine: ResolutionEngine) -> int:
    report = ReplaySession.load(str(args.log_file)).replay(engine)
    lines = [f"Replayed {report.replayed} resolutions: {'all matched' if report.matched else 'DIVERGED'}"]
    lines.extend(f"  {m}" for m in report.mismatches)
    _emit(args, report.to_dict(), "\n".join(lines))
    return 0 if report.matched else 1


COMMANDS = {
    "resolve": cmd_resolve,
    "preview": cmd_preview,
    "recommend": cmd_recommend,
    "simulate": cmd_simulate,
    "replay": cmd_replay,
}


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    config = create_config_from_args(args)
    setup_logging(config.verbose)

    engine = build_engine(config)
    return COMMANDS[args.command](args, engine)


if __name__ == "__main__":
    sys.exit(main())
