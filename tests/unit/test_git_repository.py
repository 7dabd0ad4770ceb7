"""Tests for the git-backed and local source-tree providers."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from mudblazor_index.core.config import RepositoryConfig
from mudblazor_index.errors import RepositoryUnavailableError
from mudblazor_index.repository import GitRepositoryService, LocalSourceTree, SourceTreeProvider
from mudblazor_index.utils.subprocess_utils import SubprocessError

MODULE = "mudblazor_index.repository.git_repository"


def _completed(stdout=""):
    return subprocess.CompletedProcess(["git"], 0, stdout=stdout, stderr="")


@pytest.fixture
def service(tmp_path):
    return GitRepositoryService(
        url="https://github.com/MudBlazor/MudBlazor.git",
        local_path=tmp_path / "repo",
        branch="dev",
    )


class TestLocalSourceTree:
    def test_is_a_provider(self, tmp_path):
        assert isinstance(LocalSourceTree(tmp_path), SourceTreeProvider)

    @pytest.mark.asyncio
    async def test_available_when_directory_exists(self, tmp_path):
        tree = LocalSourceTree(tmp_path)
        assert await tree.ensure_available() is True
        assert tree.get_path("src") == tmp_path.resolve() / "src"

    @pytest.mark.asyncio
    async def test_unavailable_when_missing(self, tmp_path):
        assert await LocalSourceTree(tmp_path / "nope").ensure_available() is False


class TestGitRepositoryService:
    def test_from_config(self, tmp_path):
        config = RepositoryConfig(local_path=tmp_path / "checkout", branch="main")
        service = GitRepositoryService.from_config(config)

        assert service.branch == "main"
        assert service.root_path == (tmp_path / "checkout").resolve()
        assert isinstance(service, SourceTreeProvider)

    def test_rejects_bad_branch(self, tmp_path):
        with pytest.raises(ValueError):
            GitRepositoryService(url="x", local_path=tmp_path, branch="--upload-pack=evil")

    def test_current_commit_without_checkout(self, service):
        assert service.is_available is False
        assert service.current_commit is None

    @pytest.mark.asyncio
    async def test_missing_git_executable(self, service):
        with patch(f"{MODULE}.check_command_exists", return_value=False):
            with pytest.raises(RepositoryUnavailableError, match="git executable"):
                await service.ensure_available()

    @pytest.mark.asyncio
    async def test_first_call_clones(self, service):
        def fake_clone(args, **kwargs):
            (service.root_path / ".git").mkdir(parents=True)
            return _completed()

        with patch(f"{MODULE}.check_command_exists", return_value=True), \
             patch(f"{MODULE}.run_git_with_retry", side_effect=fake_clone) as mock_retry, \
             patch(f"{MODULE}.run_git_command", return_value=_completed("abc1234\n")):
            assert await service.ensure_available() is True

        args = mock_retry.call_args[0][0]
        assert args[:5] == ["clone", "--depth", "1", "--branch", "dev"]
        assert args[-1] == str(service.root_path)
        assert mock_retry.call_args.kwargs["timeout"] == 600

    @pytest.mark.asyncio
    async def test_clone_failure_raises(self, service):
        with patch(f"{MODULE}.check_command_exists", return_value=True), \
             patch(f"{MODULE}.run_git_with_retry", side_effect=SubprocessError("git clone", 128, "fatal")):
            with pytest.raises(RepositoryUnavailableError, match="clone failed"):
                await service.ensure_available()

    @pytest.mark.asyncio
    async def test_existing_checkout_is_updated(self, service):
        (service.root_path / ".git").mkdir(parents=True)
        mock_git = MagicMock(side_effect=[_completed("aaaaaaa"), _completed(), _completed("bbbbbbb")])

        with patch(f"{MODULE}.check_command_exists", return_value=True), \
             patch(f"{MODULE}.run_git_with_retry", return_value=_completed()) as mock_retry, \
             patch(f"{MODULE}.run_git_command", mock_git):
            assert await service.ensure_available() is True

        assert mock_retry.call_args[0][0] == ["fetch", "--depth", "1", "origin", "dev"]
        assert mock_git.call_args_list[1][0][0] == ["reset", "--hard", "FETCH_HEAD"]

    @pytest.mark.asyncio
    async def test_update_failure_keeps_existing_checkout(self, service):
        (service.root_path / ".git").mkdir(parents=True)

        with patch(f"{MODULE}.check_command_exists", return_value=True), \
             patch(f"{MODULE}.run_git_with_retry", side_effect=SubprocessError("git fetch", 1, "offline")), \
             patch(f"{MODULE}.run_git_command", return_value=_completed("aaaaaaa")):
            assert await service.ensure_available() is True

    @pytest.mark.asyncio
    async def test_force_refresh_removes_checkout(self, service):
        (service.root_path / ".git").mkdir(parents=True)
        stale = service.root_path / "stale.txt"
        stale.write_text("old")

        def fake_clone(args, **kwargs):
            (service.root_path / ".git").mkdir(parents=True)
            return _completed()

        with patch(f"{MODULE}.check_command_exists", return_value=True), \
             patch(f"{MODULE}.run_git_with_retry", side_effect=fake_clone), \
             patch(f"{MODULE}.run_git_command", return_value=_completed("ccccccc")):
            assert await service.force_refresh() is True

        assert not stale.exists()
