#!/usr/bin/env python3
"""
Appointment intake - replay an appointment-request session against the portal API.

Main entry point for the application.
"""

import argparse
import asyncio
import json
import sys

from loguru import logger

from intake.core.config import get_settings
from intake.core.exceptions import ConfigurationError, IntakeError
from intake.core.logger import setup_logging
from intake.replay import load_scenario, run_scenario
from intake.services.api import PortalApiClient
from intake.services.wizard import IntakeController, build_submission_payload


async def run_replay(scenario: dict, dry_run: bool = False) -> int:
    """
    Replay a scenario and print the submitted (or would-be) payload.

    Args:
        scenario: Loaded scenario
        dry_run: Replace the final POST with printing the payload

    Returns:
        Process exit code
    """
    settings = get_settings()
    async with PortalApiClient(settings=settings) as api:
        client = _DryRunApi(api) if dry_run else api
        controller = IntakeController(
            client, settings=settings, user_email=scenario.get("user_email")
        )
        try:
            await run_scenario(controller, scenario["steps"])
        finally:
            await controller.close()

        session = controller.session
        payload = session.submitted_payload
        if payload is None and dry_run:
            payload = build_submission_payload(session)
        if payload is not None:
            print(json.dumps(payload, indent=2, default=str))
        if session.errors:
            logger.error(f"Session ended with errors: {session.errors}")
            return 1
        return 0


class _DryRunApi:
    """Delegates to the real client but never posts the form."""

    def __init__(self, api: PortalApiClient):
        self._api = api
        self.public = _DryRunPublic(api.public)

    def __getattr__(self, name):
        return getattr(self._api, name)


class _DryRunPublic:
    def __init__(self, public):
        self._public = public

    def __getattr__(self, name):
        return getattr(self._public, name)

    async def submit_form(self, payload: dict) -> dict:
        logger.info("Dry run: appointment request not sent")
        return {}


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Appointment intake - replay a wizard session")
    parser.add_argument("scenario", help="Path to a YAML scenario file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not POST the final form; print the payload instead",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to LOG_LEVEL)",
    )

    args = parser.parse_args()

    try:
        settings = get_settings()
    except ValueError as e:
        # pydantic ValidationError is a ValueError
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(
        args.log_level or settings.log_level,
        json_format=settings.log_json,
        log_dir=settings.log_dir,
    )

    try:
        scenario = load_scenario(args.scenario)
        sys.exit(asyncio.run(run_replay(scenario, dry_run=args.dry_run)))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        sys.exit(1)
    except IntakeError as e:
        logger.error(f"Fatal error: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
