"""Scenario replay: drive the wizard from a YAML script.

A scenario looks like::

    user_email: jane@example.com   # optional, logged-in prefill
    steps:
      - update:
          email: jane@example.com
          full_name.first: Jane
      - next
      - toggle_slot: 0             # index into the current candidate slots
      - none_work: true
      - back
      - submit

Background work (email checks, directory loads, slot searches) is settled after
every step so each step sees the results of the previous one.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from loguru import logger

from .core.enums import NavigationOutcome
from .core.exceptions import ConfigurationError
from .services.wizard.controller import IntakeController

STEP_NAMES = frozenset({"update", "next", "back", "submit", "toggle_slot", "none_work", "wait"})


def load_scenario(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load and sanity-check a scenario file.

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    scenario_path = Path(path)
    if not scenario_path.exists():
        raise ConfigurationError(f"Scenario file not found: {scenario_path}")

    with open(scenario_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("steps"), list):
        raise ConfigurationError(f"Scenario {scenario_path} must define a list of steps")

    for index, step in enumerate(data["steps"]):
        if isinstance(step, str):
            name = step
        elif isinstance(step, dict) and len(step) == 1:
            name = next(iter(step))
        else:
            name = None
        if name not in STEP_NAMES:
            raise ConfigurationError(f"Step {index + 1}: unknown action {step!r}")
    return data


async def run_step(controller: IntakeController, step: Union[str, Dict[str, Any]]) -> Optional[str]:
    """
    Apply one scenario step.

    Returns:
        Navigation outcome value for navigation steps, None otherwise
    """
    if isinstance(step, str):
        name, arg = step, None
    else:
        name, arg = next(iter(step.items()))

    outcome: Optional[NavigationOutcome] = None
    if name == "update":
        controller.update(arg or {})
    elif name == "next":
        outcome = await controller.next()
    elif name == "back":
        outcome = await controller.back()
    elif name == "submit":
        outcome = await controller.submit()
    elif name == "toggle_slot":
        slots = controller.session.candidate_slots
        if not isinstance(arg, int) or not 0 <= arg < len(slots):
            logger.warning(f"No candidate slot #{arg} ({len(slots)} offered); step skipped")
        else:
            controller.toggle_slot(slots[arg].iso)
    elif name == "none_work":
        controller.set_none_work(bool(arg if arg is not None else True))

    await controller.settle()
    return outcome.value if outcome else None


async def run_scenario(controller: IntakeController, steps: List[Any]) -> List[Optional[str]]:
    """Run every step in order and return their outcomes."""
    await controller.start()
    await controller.settle()

    outcomes = []
    for index, step in enumerate(steps, start=1):
        outcome = await run_step(controller, step)
        outcomes.append(outcome)
        errors = controller.errors
        logger.info(
            f"Step {index}: {step if isinstance(step, str) else next(iter(step))} -> "
            f"{outcome or 'ok'} (page={controller.page.value}"
            f"{', errors=' + ', '.join(sorted(errors)) if errors else ''})"
        )
    return outcomes
