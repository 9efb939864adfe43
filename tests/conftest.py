"""Shared test fixtures for gzgit.

Builds throwaway git repositories under ``tmp_path``.  Tests that need a
real repository are skipped when git is not installed.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from gzgit.workspace import Workspace

GIT = shutil.which("git")

_ENV = {
    **os.environ,
    "LC_ALL": "C",
    "GIT_CONFIG_NOSYSTEM": "1",
    "GIT_TERMINAL_PROMPT": "0",
}


class GitRepo:
    """Small builder for scripted git histories."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def git(self, *args: str, check: bool = True) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            env=_ENV,
            capture_output=True,
            text=True,
        )
        if check and result.returncode != 0:
            raise AssertionError(
                f"git {' '.join(args)} failed ({result.returncode}): {result.stderr}"
            )
        return result.stdout

    def write(self, name: str, content: str | bytes) -> None:
        target = self.path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)

    def commit(self, message: str, files: dict[str, str | bytes] | None = None) -> str:
        """Write ``files``, stage everything and commit.  Returns the new hash."""
        for name, content in (files or {}).items():
            self.write(name, content)
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.rev("HEAD")

    def remove(self, name: str, message: str) -> str:
        self.git("rm", "-q", name)
        self.git("commit", "-q", "-m", message)
        return self.rev("HEAD")

    def branch(self, name: str, start: str | None = None) -> None:
        self.git("branch", name, *([start] if start else []))

    def checkout(self, name: str) -> None:
        self.git("checkout", "-q", name)

    def rev(self, ref: str) -> str:
        return self.git("rev-parse", ref).strip()

    def current(self) -> str:
        return self.git("symbolic-ref", "--short", "HEAD").strip()


def init_repo(path: Path) -> GitRepo:
    """``git init`` with a fixed identity and ``main`` as the first branch."""
    path.mkdir(parents=True, exist_ok=True)
    repo = GitRepo(path)
    repo.git("init", "-q")
    repo.git("symbolic-ref", "HEAD", "refs/heads/main")
    repo.git("config", "user.name", "Test User")
    repo.git("config", "user.email", "test@example.com")
    repo.git("config", "commit.gpgsign", "false")
    repo.git("config", "core.autocrlf", "false")
    return repo


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """Repository on ``main`` with one commit touching README.md."""
    if GIT is None:
        pytest.skip("git is not installed")
    repo = init_repo(tmp_path / "repo")
    repo.commit("initial commit", {"README.md": "# test\n"})
    return repo


@pytest.fixture
def empty_repo(tmp_path: Path) -> GitRepo:
    """Repository with no commits."""
    if GIT is None:
        pytest.skip("git is not installed")
    return init_repo(tmp_path / "empty")


@pytest.fixture
def workspace(git_repo: GitRepo):
    ws = Workspace.open(git_repo.path)
    yield ws
    ws.close()


@pytest.fixture
def diverged(git_repo: GitRepo) -> GitRepo:
    """``main`` and ``feature/x`` both rewrote line one of shared.txt."""
    git_repo.commit("add shared", {"shared.txt": "base\n"})
    git_repo.branch("feature/x")
    git_repo.commit("main edit", {"shared.txt": "main side\n"})
    git_repo.checkout("feature/x")
    git_repo.commit("feature edit", {"shared.txt": "feature side\n"})
    git_repo.checkout("main")
    return git_repo
