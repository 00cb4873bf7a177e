"""Command templating and execution for the command action.

A template such as ``"make -C {:p}"`` has every ``{:p}`` replaced with the
first path of the triggering event, then gets split on ASCII whitespace into
a program and its arguments. There is no quoting: a path containing spaces
is split into several arguments.
"""
from __future__ import annotations

import logging
import re
import subprocess
import sys
from typing import List, Tuple

from .actions import Action, EmptyCommandError, SpawnFailure
from .events import RawEvent

logger = logging.getLogger(__name__)

PLACEHOLDER = "{:p}"

_WHITESPACE = re.compile(r"[ \t\n\r\f\v]+")

Invocation = Tuple[str, List[str]]


def render(template: str, event: RawEvent) -> str:
    """Substitute the event's first path for every placeholder."""

    first = event.first_path
    replacement = str(first) if first is not None else ""
    return template.replace(PLACEHOLDER, replacement)


def build_invocation(command_line: str) -> Invocation:
    """Split a rendered command line into ``(program, args)``."""

    tokens = [token for token in _WHITESPACE.split(command_line) if token]
    if not tokens:
        raise EmptyCommandError(f"Command '{command_line}' is empty")
    return tokens[0], tokens[1:]


def execute(invocation: Invocation, quiet: bool, *, template: str = "") -> int:
    """Run the program and return its exit status.

    Non-quiet runs inherit stdin/stdout/stderr so output streams live. Quiet
    runs still inherit stdin but capture output and echo it afterwards: stdout
    to our stdout and stderr to our stderr when non-empty.
    """

    program, args = invocation
    argv = [program, *args]
    logger.debug("Running %s", argv)
    try:
        if quiet:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        else:
            completed = subprocess.run(argv, check=False)
    except OSError as exc:
        raise SpawnFailure(program, template or " ".join(argv), exc) from exc

    if quiet:
        _echo(completed.stdout, sys.stdout)
        _echo(completed.stderr, sys.stderr)

    if completed.returncode != 0:
        logger.warning("Command '%s' exited with status %s", program, completed.returncode)
    return completed.returncode


def _echo(output: str, stream) -> None:
    if not output:
        return
    stream.write(output)
    if not output.endswith("\n"):
        stream.write("\n")
    stream.flush()


class CommandAction(Action):
    """Runs an external command built from a template."""

    name = "command"

    def __init__(self, template: str, quiet: bool = False):
        self._template = template
        self._quiet = quiet

    @property
    def template(self) -> str:
        return self._template

    @property
    def quiet(self) -> bool:
        return self._quiet

    def handle_change(self, event: RawEvent) -> None:
        command_line = render(self._template, event)
        invocation = build_invocation(command_line)
        execute(invocation, self._quiet, template=self._template)

    def __repr__(self) -> str:
        return f"<CommandAction {self._template!r} quiet={self._quiet}>"
