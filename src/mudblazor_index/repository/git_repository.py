"""Source-tree providers: a git checkout kept in sync, or a plain local directory."""

import asyncio
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from mudblazor_index.errors import RepositoryUnavailableError
from mudblazor_index.utils.subprocess_utils import (
    SubprocessError,
    check_command_exists,
    run_git_command,
    run_git_with_retry,
)
from mudblazor_index.utils.validators import validate_branch_name

logger = logging.getLogger(__name__)


@runtime_checkable
class SourceTreeProvider(Protocol):
    """What the indexer needs from whoever owns the source tree."""

    @property
    def root_path(self) -> Path: ...

    @property
    def is_available(self) -> bool: ...

    def get_path(self, relative_path: str) -> Path: ...

    async def ensure_available(self) -> bool: ...


class LocalSourceTree:
    """An existing directory indexed as-is, with no version control involved."""

    def __init__(self, root_path: Union[str, Path]):
        self._root = Path(root_path).resolve()

    @property
    def root_path(self) -> Path:
        return self._root

    @property
    def is_available(self) -> bool:
        return self._root.is_dir()

    async def ensure_available(self) -> bool:
        if not self.is_available:
            logger.warning("Source directory does not exist: %s", self._root)
        return self.is_available

    def get_path(self, relative_path: str) -> Path:
        return self._root / relative_path


class GitRepositoryService:
    """Keeps a shallow clone of the component library up to date.

    The first call clones; later calls fetch and hard-reset to the tracked
    branch. The checkout is only ever read, so local changes are discarded.
    """

    def __init__(
        self,
        url: str,
        local_path: Union[str, Path],
        branch: str = "dev",
        clone_timeout: int = 600,
    ):
        self.url = url
        self.branch = validate_branch_name(branch)
        self.clone_timeout = clone_timeout
        self._root = Path(local_path).resolve()
        self._sync_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config) -> "GitRepositoryService":
        """Build from a RepositoryConfig section."""
        return cls(
            url=config.url,
            local_path=config.local_path,
            branch=config.branch,
            clone_timeout=config.clone_timeout,
        )

    @property
    def root_path(self) -> Path:
        return self._root

    @property
    def is_available(self) -> bool:
        return (self._root / ".git").is_dir()

    @property
    def current_commit(self) -> Optional[str]:
        """Short hash of HEAD, or None when there is no checkout."""
        if not self.is_available:
            return None
        try:
            result = run_git_command(["rev-parse", "--short=7", "HEAD"], cwd=self._root)
        except (SubprocessError, subprocess.TimeoutExpired, OSError):
            return None
        return result.stdout.strip() or None

    def get_path(self, relative_path: str) -> Path:
        return self._root / relative_path

    async def ensure_available(self) -> bool:
        """Clone or update the checkout.

        Raises:
            RepositoryUnavailableError: If git is missing or the initial clone fails
        """
        async with self._sync_lock:
            if not check_command_exists("git"):
                raise RepositoryUnavailableError(str(self._root), "git executable not found on PATH")

            if not self.is_available:
                await self._clone()
                return True

            await self._update()
            return self.is_available

    async def force_refresh(self) -> bool:
        """Delete the checkout and clone again."""
        async with self._sync_lock:
            if self._root.exists():
                logger.info("Removing existing checkout at %s", self._root)
                await asyncio.to_thread(shutil.rmtree, self._root)
        return await self.ensure_available()

    async def _clone(self) -> None:
        logger.info("Cloning %s (%s) to %s", self.url, self.branch, self._root)
        self._root.parent.mkdir(parents=True, exist_ok=True)
        try:
            await asyncio.to_thread(
                run_git_with_retry,
                ["clone", "--depth", "1", "--branch", self.branch, "--", self.url, str(self._root)],
                timeout=self.clone_timeout,
            )
        except (SubprocessError, subprocess.TimeoutExpired) as e:
            raise RepositoryUnavailableError(str(self._root), f"clone failed: {e}") from e
        logger.info("Cloned repository at commit %s", self.current_commit)

    async def _update(self) -> None:
        previous = self.current_commit
        try:
            await asyncio.to_thread(
                run_git_with_retry,
                ["fetch", "--depth", "1", "origin", self.branch],
                cwd=self._root,
                timeout=self.clone_timeout,
            )
            await asyncio.to_thread(
                run_git_command, ["reset", "--hard", "FETCH_HEAD"], cwd=self._root
            )
        except (SubprocessError, subprocess.TimeoutExpired) as e:
            # An existing checkout is still indexable, just possibly stale
            logger.warning("Could not update repository, using existing checkout: %s", e)
            return

        current = self.current_commit
        if previous != current:
            logger.info("Repository updated from %s to %s", previous, current)
        else:
            logger.debug("Repository already up to date at %s", current)
