"""
Command Tools

Runs a command for the agent. The command line is split with shell-like
quoting rules and executed directly, without a shell.
"""

import logging
import shlex
import subprocess

from config import COMMAND_TIMEOUT
from .errors import CommandFailedError, InvalidToolInputError

logger = logging.getLogger(__name__)


def run_command(command: str, timeout: int = COMMAND_TIMEOUT) -> str:
    """
    Run a command and return its combined output.

    Args:
        command: Command line, e.g. 'grep -n "def " app.py'
        timeout: Seconds before the command is killed

    Returns:
        stdout followed by stderr, stripped (may be empty)

    Raises:
        InvalidToolInputError: Empty or unparsable command line
        CommandFailedError: The command could not start, timed out or
            exited non-zero
    """
    try:
        args = shlex.split(command.strip())
    except ValueError as e:
        raise InvalidToolInputError(f'Could not parse command "{command}": {e}')

    if not args:
        raise InvalidToolInputError("Empty command")

    logger.info(f"💻 Running: {command}")

    try:
        completed = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise CommandFailedError(f'Command "{command}" timed out after {timeout}s')
    except OSError as e:
        raise CommandFailedError(f'Failed to run command "{command}": {e}')

    combined = ((completed.stdout or "") + (completed.stderr or "")).strip()

    if completed.returncode != 0:
        message = f"Command failed with exit code {completed.returncode}"
        if combined:
            message += f"\n{combined}"
        raise CommandFailedError(message, exit_code=completed.returncode)

    return combined
