"""
 ██████╗██╗  ██╗███████╗ ██████╗██╗  ██╗    ██╗███╗   ██╗
██╔════╝██║  ██║██╔════╝██╔════╝██║ ██╔╝    ██║████╗  ██║
██║     ███████║█████╗  ██║     █████╔╝     ██║██╔██╗ ██║
██║     ██╔══██║██╔══╝  ██║     ██╔═██╗     ██║██║╚██╗██║
╚██████╗██║  ██║███████╗╚██████╗██║  ██╗    ██║██║ ╚████║
 ╚═════╝╚═╝  ╚═╝╚══════╝ ╚═════╝╚═╝  ╚═╝    ╚═╝╚═╝  ╚═══╝
src/office_checkin/cli.py
Command-line front-end for the office check-in form.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.prompt import Prompt

from .client import CheckInClient, HttpCheckInClient, StubCheckInClient
from .config import CheckInConfig, ConfigError, ensure_env_file, load_config
from .controller import CheckInController
from .gate import GeolocationGate
from .geofence import Coordinate, GateError, GateStatus
from .location import PlaywrightLocationProvider
from .notifications import ConsoleNotifier, render_roster
from .roster import (
    JsonRosterSource,
    Roster,
    RosterError,
    RosterSource,
    StaticRosterSource,
    UnknownIdentityError,
)
from .submitter import CheckInSubmitter, CheckInSuccess
from .utils.logger import logger, set_log_profile, spinner, step, success


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="office-checkin",
        description="Check in to the office after confirming you are on site",
    )
    parser.add_argument("--employee", help="Roster id to check in as")
    parser.add_argument("--list", action="store_true", help="List the roster and exit")
    parser.add_argument("--locate-only", action="store_true", help="Check the location gate without submitting")
    parser.add_argument("--mock-location", action="store_true", help="Development only: skip geolocation and report allowed")
    parser.add_argument("--simulate-position", metavar="LAT,LON", help="Have the browser report this position")
    parser.add_argument("--headed", action="store_true", help="Run the geolocation browser with UI (sets HEADLESS=0)")
    parser.add_argument("--env-file", help="Path to the .env file (default: $ENV_FILE or .env)")
    parser.add_argument("--init-env", action="store_true", help="Write a template .env if missing and exit")
    parser.add_argument("--debug", action="store_true", help="Enable verbose debug logging")
    return parser


def apply_overrides(config: CheckInConfig, args: argparse.Namespace) -> CheckInConfig:
    """Fold command-line flags over the environment configuration."""
    gate = config.gate
    if args.mock_location:
        gate = dataclasses.replace(gate, use_mock_location=True)
    simulated = config.simulated_position
    if args.simulate_position:
        simulated = Coordinate.parse(args.simulate_position)
    return dataclasses.replace(
        config,
        gate=gate,
        simulated_position=simulated,
        headless=config.headless and not args.headed,
    )


def build_roster_source(config: CheckInConfig) -> RosterSource:
    if config.roster_path is not None:
        return JsonRosterSource(config.roster_path)
    return StaticRosterSource()


def build_client(config: CheckInConfig) -> CheckInClient:
    if config.api_base_url:
        return HttpCheckInClient(config.api_base_url, timeout_seconds=config.request_timeout_seconds)
    logger.warning("CHECKIN_API_BASE_URL is not set; using the stub check-in endpoint")
    return StubCheckInClient(delay_seconds=config.stub_delay_seconds)


def build_controller(config: CheckInConfig, roster: Roster, notifier: ConsoleNotifier) -> CheckInController:
    provider = PlaywrightLocationProvider(
        page_url=config.location_page_url,
        headless=config.headless,
        channel=config.browser_channel,
        grant_permission=config.grant_geolocation,
        simulated_position=config.simulated_position,
    )
    gate = GeolocationGate(provider, config.gate)
    submitter = CheckInSubmitter(build_client(config), notifier)
    return CheckInController(roster, gate, submitter, notifier)


def _prompt_identity(console: Console, roster: Roster) -> Optional[str]:
    render_roster(console, roster)
    ids = [identity.id for identity in roster]
    choice = Prompt.ask("→ Select your id", choices=ids, console=console)
    return choice or None


async def _locate(controller: CheckInController) -> bool:
    async with spinner("Getting your location") as sp:
        result = await controller.refresh_location()
        if isinstance(result, GateError):
            sp.fail(result.message)
        elif result.status is GateStatus.OUT_OF_RANGE:
            sp.fail("outside the check-in area")
        else:
            sp.succeed()
    text = controller.status_text()
    if text:
        logger.info(text)
    return controller.gate.status is GateStatus.ALLOWED


async def _check_in(controller: CheckInController) -> bool:
    identity = controller.selected
    if identity is None:
        logger.warning("No identity selected; nothing to do")
        return False
    step(f"Checking in {identity.display_name} ({identity.id})")
    result = await controller.check_in()
    text = controller.status_text()
    if text:
        logger.info(text)
    return isinstance(result, CheckInSuccess)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        set_log_profile("debug")

    env_file = args.env_file or os.getenv("ENV_FILE", ".env")
    if args.init_env:
        if not ensure_env_file(env_file):
            logger.info("%s already exists; leaving it untouched", env_file)
        return 0

    try:
        config = apply_overrides(load_config(env_file), args)
        roster = build_roster_source(config).load()
    except (ConfigError, RosterError, ValueError, OSError) as exc:
        logger.error("Configuration problem: %s", exc)
        return 2

    console = Console()
    if args.list:
        render_roster(console, roster)
        return 0

    controller = build_controller(config, roster, ConsoleNotifier(console))

    if args.locate_only:
        return 0 if asyncio.run(_locate(controller)) else 1

    identity_id = args.employee
    if identity_id is None and sys.stdin.isatty():
        identity_id = _prompt_identity(console, roster)
    try:
        controller.select(identity_id)
    except UnknownIdentityError as exc:
        logger.error("%s (use --list to see the roster)", exc)
        return 2

    if asyncio.run(_check_in(controller)):
        success("Check-in recorded")
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
