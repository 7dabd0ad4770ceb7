"""Providers of the component library source tree."""

from .git_repository import GitRepositoryService, LocalSourceTree, SourceTreeProvider

__all__ = ["GitRepositoryService", "LocalSourceTree", "SourceTreeProvider"]
