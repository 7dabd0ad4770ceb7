"""Subprocess helpers for the git operations behind the source-tree provider."""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

# Never block on a credential prompt; a public clone needs none
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class SubprocessError(Exception):
    """Exception raised when a subprocess command fails."""

    def __init__(self, cmd: str, returncode: int, stderr: str, stdout: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(
            f"Command failed with exit code {returncode}: {cmd}\nstderr: {stderr.strip()}"
        )


def run_command(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
    check: bool = True,
    timeout: Optional[int] = None,
    env: Optional[dict] = None,
) -> subprocess.CompletedProcess:
    """
    Run a command and capture its text output.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        check: Raise SubprocessError on non-zero exit
        timeout: Timeout in seconds
        env: Extra environment variables, merged over the current environment

    Returns:
        CompletedProcess with stdout, stderr, returncode

    Raises:
        SubprocessError: If check=True and the command fails
        subprocess.TimeoutExpired: If timeout exceeded
    """
    merged_env = {**os.environ, **env} if env else None
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=merged_env,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.error("Command timed out after %ss: %s", timeout, " ".join(cmd))
        raise

    if check and result.returncode != 0:
        raise SubprocessError(
            cmd=" ".join(cmd),
            returncode=result.returncode,
            stderr=result.stderr,
            stdout=result.stdout,
        )
    return result


def run_git_command(
    args: List[str],
    *,
    cwd: Optional[Union[str, Path]] = None,
    check: bool = True,
    timeout: int = 30,
) -> subprocess.CompletedProcess:
    """
    Run a git command.

    Args:
        args: Git command arguments (without 'git' prefix)
        cwd: Working directory (git repo)
        check: Raise exception on non-zero exit
        timeout: Timeout in seconds (default: 30)

    Raises:
        SubprocessError: If check=True and command fails
        subprocess.TimeoutExpired: If timeout exceeded
    """
    try:
        return run_command(
            ["git"] + args,
            cwd=Path(cwd) if cwd is not None else None,
            check=check,
            timeout=timeout,
            env=GIT_ENV,
        )
    except SubprocessError:
        logger.error("Git command failed in %s: %s", cwd or ".", " ".join(args))
        raise


def run_git_with_retry(
    args: List[str],
    *,
    cwd: Optional[Union[str, Path]] = None,
    max_retries: int = 3,
    timeout: int = 300,
) -> subprocess.CompletedProcess:
    """
    Run a network-bound git command (clone, fetch), retrying transient failures.

    Raises:
        SubprocessError: If all retries are exhausted
    """
    last_error: Optional[SubprocessError] = None
    for attempt in range(max_retries):
        try:
            return run_git_command(args, cwd=cwd, timeout=timeout)
        except SubprocessError as e:
            last_error = e
            if attempt < max_retries - 1:
                logger.warning(
                    "git %s failed (attempt %d/%d), retrying",
                    args[0], attempt + 1, max_retries,
                )

    logger.error("git %s failed after %d attempts", args[0], max_retries)
    assert last_error is not None
    raise last_error


def check_command_exists(command: str) -> bool:
    """Return True if *command* is on PATH."""
    return shutil.which(command) is not None
