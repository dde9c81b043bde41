"""Command line: generate plans, simulate play, read sessions.

    campaign-sim generate campaign [-t THEME] [-l LEVEL] [-s SIZE]
    campaign-sim generate session CAMPAIGN_ID [-o OBJECTIVE ...]
    campaign-sim simulate CAMPAIGN_ID -T TURNS
    campaign-sim read CAMPAIGN_ID

Global options (-e/--environment, -m/--model, --env-file, --data-dir, -v)
go before the command.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from campaign_sim.config import Settings, load_settings
from campaign_sim.context import campaign_context
from campaign_sim.errors import CampaignError
from campaign_sim.models import SessionOptions, TurnReport
from campaign_sim.pipeline import plan_session, read_sessions, simulate
from campaign_sim.storage import JsonStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="campaign-sim",
        description="Plan and simulate tabletop campaign sessions",
    )
    parser.add_argument("-e", "--environment", help="Environment ID to use for the interaction")
    parser.add_argument("-m", "--model", help="Model ID to use for the interaction")
    parser.add_argument("--env-file", type=Path, default=None,
                        help="Load settings from this .env file")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Keep records in a local JSON store instead of STORE_URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser(
        "generate", help="Generate new sessions either for an existing campaign or a new one",
    )
    targets = generate.add_subparsers(dest="target", required=True)

    campaign = targets.add_parser("campaign", help="Create a session 0 for a new campaign")
    _add_party_options(campaign)

    session = targets.add_parser("session", help="Create a new session for the campaign")
    session.add_argument("campaign_id")
    _add_party_options(session)
    _add_objectives_option(session)

    sim = commands.add_parser("simulate", help="Play several sessions of a campaign")
    sim.add_argument("campaign_id")
    sim.add_argument("-T", "--turns", type=_non_negative_int, required=True,
                     help="Number of turns to simulate")
    _add_party_options(sim)
    _add_objectives_option(sim)

    read = commands.add_parser("read", help="Print the played sessions of a campaign")
    read.add_argument("campaign_id")

    return parser


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {n}")
    return n


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def _add_party_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-t", "--theme", help="Set the theme of the campaign")
    parser.add_argument("-l", "--level", type=_positive_int, default=1, help="Set the level of the party")
    parser.add_argument("-s", "--size", type=_positive_int, default=4, help="Set the size of the party")


def _add_objectives_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-o", "--objective", dest="objectives", nargs="+", action="extend",
                        default=None, help="Add objectives to the game")


def session_options(args: argparse.Namespace) -> SessionOptions:
    return SessionOptions(
        model=args.model,
        environment=args.environment,
        theme=getattr(args, "theme", None),
        level=getattr(args, "level", 1),
        size=getattr(args, "size", 4),
        objectives=getattr(args, "objectives", None) or [],
    )


def print_turn(report: TurnReport) -> None:
    print(f"\nPlaying turn {report.turn} with plan {report.plan.name}")
    print(f"\nSession {report.turn} summary: {report.session.name}")
    print(report.session.properties.summary)


async def run(args: argparse.Namespace, settings: Settings) -> None:
    repository = None
    if args.data_dir:
        store = JsonStore(args.data_dir)
        store.register_type(settings.plan_type_name)
        store.register_type(settings.session_type_name)
        repository = store

    options = session_options(args)
    async with campaign_context(settings, repository=repository) as ctx:
        if args.command == "generate":
            if args.target == "campaign":
                print("Creating a new game...")
                plan = await plan_session(ctx, None, options)
            else:
                print(f"Creating a new session for {args.campaign_id}...")
                plan = await plan_session(ctx, args.campaign_id, options)
            print(f"Session plan saved: {plan.name} ({plan.id})")

        elif args.command == "simulate":
            print("Simulating game...")
            await simulate(ctx, args.campaign_id, args.turns, options, on_turn=print_turn)

        elif args.command == "read":
            print(f"Reading sessions for {args.campaign_id}...")
            sessions = await read_sessions(ctx, args.campaign_id)
            print(f"Found {len(sessions)} sessions for campaign {args.campaign_id}\n")
            for s in sessions:
                print(f"\n\n{s.name}:")
                print(s.properties.summary)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.env_file)
        asyncio.run(run(args, settings))
    except CampaignError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
