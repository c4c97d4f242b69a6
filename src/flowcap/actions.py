"""Scripted and interactive capture actions.

Both modes are thin interpreters over the same executor: each action is one
of capture, goto, wait, scroll or click, run one at a time against the
browser driver, with captures going through the run's StepRecorder.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from flowcap.constants import (
    DEFAULT_SCREENSHOT_NAME,
    DEFAULT_SCROLL_PIXELS,
    DEFAULT_WAIT_MS,
)
from flowcap.models import Step
from flowcap.recorder import StepRecorder

logger = logging.getLogger(__name__)


class ActionType(Enum):
    """Closed set of actions a script or an interactive session may run."""
    CAPTURE = "capture"
    GOTO = "goto"
    WAIT = "wait"
    SCROLL = "scroll"
    CLICK = "click"


@dataclass(frozen=True)
class Action:
    """One scripted or interactive action."""

    type: ActionType
    name: Optional[str] = None
    url: Optional[str] = None
    ms: int = DEFAULT_WAIT_MS
    pixels: int = DEFAULT_SCROLL_PIXELS
    selector: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        """Build an action from a ``{"action": ..., ...}`` mapping.

        Raises:
            ValueError: If the action name is not one of the known actions
        """
        action_type = ActionType(str(data.get("action", "")).lower())
        return cls(
            type=action_type,
            name=data.get("name"),
            url=data.get("url"),
            ms=_positive_int(data.get("ms"), DEFAULT_WAIT_MS),
            pixels=_positive_int(data.get("pixels"), DEFAULT_SCROLL_PIXELS),
            selector=data.get("selector"),
        )


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number or default


def with_scheme(url: str) -> str:
    """Prefix bare hosts with ``https://``."""
    return url if url.startswith("http") else f"https://{url}"


def parse_steps(
    steps: Union[str, Iterable[Dict[str, Any]], None],
    default_name: Optional[str] = None,
) -> List[Action]:
    """Parse a scripted step list.

    Args:
        steps: JSON text or already-decoded list of ``{"action": ...}`` objects;
            None means a single capture
        default_name: Name of the default capture (falls back to "screenshot")

    Returns:
        Actions in script order; unknown actions are logged and dropped

    Raises:
        ValueError: If the JSON is invalid or not a list of objects
    """
    if steps is None:
        return [Action(ActionType.CAPTURE, name=default_name or DEFAULT_SCREENSHOT_NAME)]

    if isinstance(steps, str):
        try:
            steps = json.loads(steps)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid steps JSON: {e}") from e

    if not isinstance(steps, list):
        raise ValueError("Steps must be a JSON array of objects")

    actions = []
    for raw in steps:
        if not isinstance(raw, dict):
            raise ValueError(f"Step must be an object, got: {raw!r}")
        try:
            actions.append(Action.from_dict(raw))
        except ValueError:
            logger.warning(f"Unknown action: {raw.get('action')}")
    return actions


# =============================================================================
# Interactive commands
# =============================================================================

DONE = "done"
HELP = "help"

HELP_TEXT = """Commands:
  capture/c <name> - Take a screenshot
  goto/g <url>     - Navigate to URL
  click <selector> - Click an element
  scroll <pixels>  - Scroll down
  wait/w <ms>      - Wait for ms
  done/q           - Save and exit"""

_COMMAND_ALIASES = {
    "capture": ActionType.CAPTURE,
    "c": ActionType.CAPTURE,
    "goto": ActionType.GOTO,
    "g": ActionType.GOTO,
    "click": ActionType.CLICK,
    "wait": ActionType.WAIT,
    "w": ActionType.WAIT,
    "scroll": ActionType.SCROLL,
}


def parse_command(line: str) -> Union[Action, str, None]:
    """Parse one interactive command line.

    Returns:
        An Action, DONE, HELP, or None for a blank line

    Raises:
        ValueError: With a usage message for unknown or incomplete commands
    """
    parts = line.strip().split(None, 1)
    if not parts:
        return None

    command = parts[0].lower()
    args = parts[1].strip() if len(parts) > 1 else ""

    if command in ("done", "exit", "q"):
        return DONE
    if command in ("help", "h"):
        return HELP

    action_type = _COMMAND_ALIASES.get(command)
    if action_type is None:
        raise ValueError(f"Unknown command: {command}. Type 'help' for commands.")

    if action_type is ActionType.CAPTURE:
        if not args:
            raise ValueError("Usage: capture <name>")
        return Action(action_type, name=args)
    if action_type is ActionType.GOTO:
        if not args:
            raise ValueError("Usage: goto <url>")
        return Action(action_type, url=args)
    if action_type is ActionType.CLICK:
        if not args:
            raise ValueError("Usage: click <selector>")
        return Action(action_type, selector=args)
    if action_type is ActionType.WAIT:
        return Action(action_type, ms=_positive_int(args, DEFAULT_WAIT_MS))
    return Action(action_type, pixels=_positive_int(args, DEFAULT_SCROLL_PIXELS))


# =============================================================================
# Executor
# =============================================================================

class ActionExecutor:
    """Runs actions sequentially against one browser driver."""

    def __init__(
        self,
        driver,
        recorder: StepRecorder,
        wait_until: Optional[str] = None,
        navigation_timeout: Optional[int] = None,
    ):
        self.driver = driver
        self.recorder = recorder
        self.wait_until = wait_until
        self.navigation_timeout = navigation_timeout

    async def execute(self, action: Action) -> Optional[Step]:
        """Run one action.

        Returns:
            The recorded Step for a capture, otherwise None
        """
        if action.type is ActionType.CAPTURE:
            return await self.recorder.capture(self.driver, action.name or DEFAULT_SCREENSHOT_NAME)

        if action.type is ActionType.GOTO:
            if action.url:
                url = with_scheme(action.url)
                logger.info(f"Navigating to {url}")
                await self.driver.navigate(url, wait_until=self.wait_until, timeout=self.navigation_timeout)
        elif action.type is ActionType.CLICK:
            if action.selector:
                logger.info(f"Clicking: {action.selector}")
                await self.driver.click(action.selector)
        elif action.type is ActionType.WAIT:
            logger.info(f"Waiting {action.ms}ms")
            await self.driver.wait_ms(action.ms)
        elif action.type is ActionType.SCROLL:
            await self.driver.scroll_by(action.pixels)
            logger.info(f"Scrolled {action.pixels}px")
        return None

    async def run_script(self, actions: Iterable[Action]) -> List[Step]:
        """Run a scripted action list; the first failing action aborts the script.

        Returns:
            Steps recorded by the script
        """
        actions = list(actions)
        logger.info(f"Running automated capture with {len(actions)} step(s)")

        steps = []
        for action in actions:
            try:
                step = await self.execute(action)
            except Exception as e:
                logger.error(f"Error executing step {action.type.value}: {e}")
                raise
            if step is not None:
                steps.append(step)
        return steps

    async def run_interactive(
        self,
        prompt: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ) -> List[Step]:
        """Read and run commands until the user types ``done``.

        Failing commands are reported and the session continues. End of input
        ends the session like ``done``.

        Args:
            prompt: Blocking line reader, run in a worker thread
            output: Sink for user-facing messages

        Returns:
            Steps recorded during the session
        """
        output("\n--- Interactive Flow Capture ---")
        output(HELP_TEXT + "\n")

        steps = []
        while True:
            try:
                line = await asyncio.to_thread(prompt, "> ")
            except EOFError:
                break

            try:
                command = parse_command(line)
            except ValueError as e:
                output(str(e))
                continue

            if command is None:
                continue
            if command == DONE:
                break
            if command == HELP:
                output(HELP_TEXT)
                continue

            try:
                step = await self.execute(command)
            except Exception as e:
                output(f"Error: {e}")
                continue
            if step is not None:
                steps.append(step)
                output(f"Captured: {step.filename}")
        return steps
