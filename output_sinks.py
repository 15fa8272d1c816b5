"""
Key Issuer - Pipeline Output Sinks

Each sink passes name/value pairs to the next step of a CI pipeline using
whatever convention the hosting CI system recognizes.
"""

import logging
import os
import secrets
import sys
from typing import Dict, Mapping, Optional, TextIO

from errors import ConfigurationError, OutputChannelUnavailable

logger = logging.getLogger(__name__)

GITHUB_OUTPUT_ENV = "GITHUB_OUTPUT"

SINK_NAMES = ("auto", "github", "workflow-command", "none")


def _escape_command_value(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class OutputSink:
    """Base class for pipeline output channels."""

    def write(self, name: str, value: str) -> None:
        raise NotImplementedError

    def mask(self, value: str) -> None:
        """Ask the CI system to hide ``value`` in its logs. No-op by default."""


class GitHubOutputSink(OutputSink):
    """
    Appends outputs to the file GitHub Actions names in $GITHUB_OUTPUT.

    Single-line values are written as ``name=value``; multi-line values use
    the ``name<<DELIMITER`` block form.
    """

    def __init__(self, path: Optional[str] = None, command_stream: Optional[TextIO] = None):
        self.path = path
        self.command_stream = command_stream

    def write(self, name: str, value: str) -> None:
        if not self.path:
            raise OutputChannelUnavailable(f"${GITHUB_OUTPUT_ENV} is not set")

        if "\n" in value or "\r" in value:
            delimiter = f"ghadelimiter_{secrets.token_hex(8)}"
            entry = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
        else:
            entry = f"{name}={value}\n"

        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(entry)
        except OSError as e:
            raise OutputChannelUnavailable(f"Cannot write {self.path}: {e}") from e

        logger.debug(f"Wrote output '{name}' to {self.path}")

    def mask(self, value: str) -> None:
        stream = self.command_stream or sys.stdout
        stream.write(f"::add-mask::{_escape_command_value(value)}\n")
        stream.flush()


class WorkflowCommandSink(OutputSink):
    """Legacy ``::set-output`` workflow commands written to a stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def write(self, name: str, value: str) -> None:
        stream = self.stream or sys.stdout
        try:
            stream.write(f"::set-output name={name}::{_escape_command_value(value)}\n")
            stream.flush()
        except (OSError, ValueError) as e:
            raise OutputChannelUnavailable(f"Cannot write workflow command: {e}") from e

    def mask(self, value: str) -> None:
        stream = self.stream or sys.stdout
        stream.write(f"::add-mask::{_escape_command_value(value)}\n")
        stream.flush()


class MemorySink(OutputSink):
    """Keeps outputs in a dict."""

    def __init__(self):
        self.outputs: Dict[str, str] = {}
        self.masked = []

    def write(self, name: str, value: str) -> None:
        self.outputs[name] = value

    def mask(self, value: str) -> None:
        self.masked.append(value)


class NullSink(OutputSink):
    """No pipeline channel; every write reports the channel as unavailable."""

    def write(self, name: str, value: str) -> None:
        raise OutputChannelUnavailable("Pipeline output is disabled")


def resolve_sink(name: str, environ: Optional[Mapping[str, str]] = None) -> OutputSink:
    """
    Build the sink for a configured sink name.

    Args:
        name: One of "auto", "github", "workflow-command", "none"
        environ: Environment to read $GITHUB_OUTPUT from (defaults to os.environ)

    Returns:
        An OutputSink. "auto" picks the GitHub file sink when $GITHUB_OUTPUT
        is set and the null sink otherwise.
    """
    env = os.environ if environ is None else environ
    name = (name or "auto").strip().lower()
    github_output = env.get(GITHUB_OUTPUT_ENV, "")

    if name == "auto":
        name = "github" if github_output else "none"
        logger.debug(f"Auto-selected '{name}' output sink")

    if name == "github":
        return GitHubOutputSink(github_output or None)
    if name == "workflow-command":
        return WorkflowCommandSink()
    if name == "none":
        return NullSink()

    raise ConfigurationError(
        f"Unknown output sink '{name}'. Choose one of: {', '.join(SINK_NAMES)}"
    )
