"""Tests for the git process boundary: cancellation, timeouts, lock retry."""

from __future__ import annotations

import logging
import shutil
import threading
import time

import pytest

from gzgit import CancelledError, GitCommandError, GitLockError, GzgitConfig, InvocationContext
from gzgit.runner import GitRunner, is_lock_error

SLEEP = shutil.which("sleep")


class TestInvocationContext:
    def test_fresh_context_is_active(self):
        ctx = InvocationContext()
        assert not ctx.done
        assert ctx.remaining() is None
        ctx.check()

    def test_cancel(self):
        ctx = InvocationContext()
        ctx.cancel()
        assert ctx.cancelled and ctx.done
        with pytest.raises(CancelledError, match="cancelled"):
            ctx.check()

    def test_deadline(self):
        ctx = InvocationContext(timeout=0)
        assert ctx.expired
        assert ctx.remaining() == 0.0
        with pytest.raises(CancelledError, match="deadline exceeded"):
            ctx.check()

    def test_background_never_done(self):
        assert not InvocationContext.background().done


class TestCancellation:
    def test_cancelled_before_start(self, workspace):
        ctx = InvocationContext()
        ctx.cancel()
        with pytest.raises(CancelledError):
            workspace.branches(ctx=ctx)

    def test_expired_before_start(self, workspace):
        with pytest.raises(CancelledError, match="deadline"):
            workspace.detect_conflicts("main", "main", ctx=InvocationContext(timeout=0))

    @pytest.mark.skipif(SLEEP is None, reason="sleep is not installed")
    def test_cancel_terminates_running_process(self, tmp_path):
        runner = GitRunner(tmp_path, GzgitConfig(git_binary=SLEEP))
        ctx = InvocationContext()
        timer = threading.Timer(0.2, ctx.cancel)
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(CancelledError, match="cancelled"):
                runner.run(["30"], ctx=ctx)
        finally:
            timer.cancel()
        assert time.monotonic() - started < 10

    @pytest.mark.skipif(SLEEP is None, reason="sleep is not installed")
    def test_config_timeout(self, tmp_path):
        runner = GitRunner(tmp_path, GzgitConfig(git_binary=SLEEP, timeout=0.2))
        with pytest.raises(CancelledError, match="timed out"):
            runner.run(["30"])

    @pytest.mark.skipif(SLEEP is None, reason="sleep is not installed")
    def test_context_deadline_while_running(self, tmp_path):
        runner = GitRunner(tmp_path, GzgitConfig(git_binary=SLEEP))
        with pytest.raises(CancelledError, match="deadline"):
            runner.run(["30"], ctx=InvocationContext(timeout=0.2))


class TestFailures:
    def test_missing_binary(self, tmp_path):
        runner = GitRunner(tmp_path, GzgitConfig(git_binary="definitely-not-git-xyz"))
        with pytest.raises(GitCommandError) as exc_info:
            runner.run(["status"], operation="status")
        assert exc_info.value.returncode == 127

    def test_error_keeps_git_diagnostic(self, workspace):
        with pytest.raises(GitCommandError) as exc_info:
            workspace.repository.git(
                ["rev-parse", "--verify", "no-such-ref"], operation="resolve", target="no-such-ref"
            )
        err = exc_info.value
        assert err.operation == "resolve"
        assert err.target == "no-such-ref"
        assert err.returncode != 0
        assert err.stderr
        assert "no-such-ref" in str(err)

    def test_unchecked_run_returns_result(self, workspace):
        result = workspace.repository.git(["rev-parse", "--verify", "--quiet", "nope"], check=False)
        assert not result.ok

    def test_repository_forwards_context(self, workspace):
        ctx = InvocationContext()
        ctx.cancel()
        with pytest.raises(CancelledError, match="cancelled"):
            workspace.repository.git(["status"], ctx=ctx, operation="status")

    def test_repository_rejects_unknown_keyword(self, workspace):
        with pytest.raises(TypeError):
            workspace.repository.git(["status"], operaton="status")


class TestLockRetry:
    @pytest.mark.parametrize(
        "stderr",
        [
            "fatal: Unable to create '/repo/.git/index.lock': File exists.",
            "error: cannot lock ref 'refs/heads/x': Unable to create '/r/.git/refs/heads/x.lock': File exists.",
            "Another git process seems to be running in this repository",
        ],
    )
    def test_lock_errors_detected(self, stderr):
        assert is_lock_error(stderr)

    def test_other_errors_not_lock(self):
        assert not is_lock_error("fatal: not a git repository")

    def test_held_lock_retries_then_raises(self, workspace, git_repo, caplog):
        (git_repo.path / ".git" / "index.lock").write_text("")
        git_repo.write("new.txt", "x\n")
        config = workspace.config.model_copy(
            update={"lock_retry_attempts": 2, "lock_retry_max_wait": 0.05}
        )
        runner = GitRunner(git_repo.path, config)
        with caplog.at_level(logging.WARNING, logger="gzgit.runner"):
            with pytest.raises(GitLockError):
                runner.run(["add", "new.txt"], operation="stage")
        assert any("Retrying" in r.getMessage() for r in caplog.records)

    def test_lock_released_between_attempts(self, workspace, git_repo):
        lock = git_repo.path / ".git" / "index.lock"
        lock.write_text("")
        git_repo.write("new.txt", "x\n")
        threading.Timer(0.05, lock.unlink).start()
        config = workspace.config.model_copy(
            update={"lock_retry_attempts": 5, "lock_retry_max_wait": 0.5}
        )
        GitRunner(git_repo.path, config).run(["add", "new.txt"], operation="stage")
        assert "new.txt" in git_repo.git("diff", "--cached", "--name-only")
