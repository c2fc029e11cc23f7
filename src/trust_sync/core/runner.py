"""Privileged command runner.

Commands run directly by default. Two escalation strategies exist:

- run_privileged() wraps the command in ``sudo --`` up front when the process
  is not root and sudo is available. Used for writes into root-owned trust
  anchor directories and the bundle rebuild commands.
- run_with_escalation() runs the command as is and only retries under sudo
  when the output carries a tool-specific permission failure signature.

There is no timeout: a hung tool hangs the caller.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from trust_sync.core.errors import CommandExecutionError

logger = logging.getLogger(__name__)

SUDO = "sudo"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command, with stdout and stderr combined."""

    args: tuple[str, ...]
    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> CommandResult:
        """Raise CommandExecutionError if the command exited non-zero."""
        if not self.ok:
            raise CommandExecutionError(self.args, self.output, self.returncode)
        return self


def run_command(
    args: Sequence[str],
    stdin: bytes | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command to completion and capture its combined output.

    Raises CommandExecutionError when the executable cannot be spawned.
    """
    argv = tuple(args)
    logger.debug("running %s", " ".join(argv))
    try:
        proc = subprocess.run(
            argv,
            input=stdin,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=dict(env) if env is not None else None,
        )
    except OSError as e:
        raise CommandExecutionError(argv, reason=str(e)) from e

    output = (proc.stdout or b"").decode(errors="replace")
    return CommandResult(args=argv, returncode=proc.returncode, output=output)


def _is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def find_sudo() -> str | None:
    return shutil.which(SUDO)


def run_privileged(args: Sequence[str], stdin: bytes | None = None) -> CommandResult:
    """Run a command that needs root, prefixed with ``sudo --`` when possible.

    Without sudo on PATH (or when already root) the command runs directly and
    any permission failure is returned to the caller unchanged.
    """
    sudo = None if _is_root() else find_sudo()
    if sudo is None:
        return run_command(args, stdin=stdin)
    return run_command([sudo, "--", *args], stdin=stdin)


def run_with_escalation(
    args: Sequence[str],
    signature: str,
    env_keep: Iterable[str] = (),
    environ: Mapping[str, str] | None = None,
    system: str | None = None,
) -> CommandResult:
    """Run a command and retry it under sudo on a permission failure.

    The retry happens only when the first attempt failed with ``signature`` in
    its output, the host is not Windows and sudo resolves on PATH. The retried
    process gets an environment holding only the ``env_keep`` variables.
    ``system`` names the host platform and defaults to platform.system().
    """
    result = run_command(args)
    if result.ok or signature not in result.output:
        return result
    if (system or platform.system()) == "Windows":
        return result

    sudo = find_sudo()
    if sudo is None:
        logger.debug("%s not found, cannot escalate %s", SUDO, args[0])
        return result

    source = os.environ if environ is None else environ
    minimal_env = {name: source[name] for name in env_keep if name in source}
    logger.debug("retrying %s with %s", args[0], SUDO)
    return run_command([sudo, *args], env=minimal_env)
