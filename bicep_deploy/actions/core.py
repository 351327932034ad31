"""GitHub Actions workflow commands and console logging."""
import json
import os
import sys
import uuid
from typing import Any, Union

from rich.console import Console
from rich.text import Text

console = Console(highlight=False, soft_wrap=True)

# Whether the run has been marked failed; read by the CLI to pick the exit code.
_failed = False


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _issue_command(command: str, message: str) -> None:
    # Workflow commands must reach stdout untouched by rich markup or wrapping.
    sys.stdout.write(f"::{command}::{_escape_data(message)}\n")
    sys.stdout.flush()


def _to_output_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def is_debug() -> bool:
    return os.environ.get("RUNNER_DEBUG") == "1"


def log_info(message: str) -> None:
    console.print(message)


def log_info_raw(message: Union[str, Text]) -> None:
    """Print a pre-rendered message, skipping rich markup parsing."""
    console.print(message, markup=False)


def log_warning(message: str) -> None:
    console.print(Text(f"Warning: {message}", style="yellow"))


def log_error(message: str) -> None:
    console.print(Text(message, style="red"))


def log_debug(message: str) -> None:
    if is_debug():
        console.print(Text(f"Debug: {message}", style="blue"))


def set_output(name: str, value: Any) -> None:
    """Write a step output.

    Uses the ``$GITHUB_OUTPUT`` file when the runner provides one and falls
    back to the legacy ``set-output`` command otherwise.

    Args:
        name: Output name.
        value: Output value; non-string values are JSON encoded.
    """
    serialized = _to_output_value(value)
    output_file = os.environ.get("GITHUB_OUTPUT")
    if output_file:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        with open(output_file, "a", encoding="utf-8") as f:
            f.write(f"{name}<<{delimiter}\n{serialized}\n{delimiter}\n")
        return

    sys.stdout.write(f"::set-output name={name}::{_escape_data(serialized)}\n")
    sys.stdout.flush()


def set_secret(value: Any) -> None:
    """Register a value to be masked in all later log output."""
    serialized = _to_output_value(value)
    if serialized:
        _issue_command("add-mask", serialized)


def set_failed(message: str) -> None:
    """Mark the run as failed and report the reason."""
    global _failed
    _failed = True
    _issue_command("error", message)


def has_failed() -> bool:
    return _failed


def reset() -> None:
    global _failed
    _failed = False
