"""Git process boundary for gzgit.

GitRunner is the only place that starts git processes.  It applies the
invocation context (cancellation and deadlines), forces a stable locale so
diagnostics can be matched, maps failures to GitCommandError, and retries
lock-file contention with tenacity.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import tenacity

from gzgit.exceptions import CancelledError, GitCommandError, GitLockError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gzgit.context import InvocationContext
    from gzgit.models.config import GzgitConfig

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.05
_KILL_GRACE = 2.0

_LOCK_ERROR = re.compile(
    r"\.lock'?: File exists|Unable to create '[^']*\.lock'|"
    r"another git process seems to be running",
    re.IGNORECASE,
)

_GIT_ENV = {
    "LC_ALL": "C",
    "LANGUAGE": "C",
    "GIT_TERMINAL_PROMPT": "0",
}


@dataclass(frozen=True)
class GitResult:
    """Captured result of one git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def lines(self) -> list[str]:
        """Non-empty stdout lines, trailing whitespace removed."""
        return [line.rstrip() for line in self.stdout.splitlines() if line.strip()]


def is_lock_error(stderr: str) -> bool:
    """True when git failed because a lock file is held."""
    return bool(_LOCK_ERROR.search(stderr))


class GitRunner:
    """Runs git in a fixed working directory.

    Not safe for concurrent mutating calls against the same working copy;
    git serialises through lock files and so must callers.
    """

    def __init__(self, cwd: str | Path, config: GzgitConfig) -> None:
        self._cwd = Path(cwd)
        self._config = config

    @property
    def cwd(self) -> Path:
        return self._cwd

    def run(
        self,
        args: Sequence[str],
        *,
        ctx: InvocationContext | None = None,
        operation: str = "git",
        target: str | None = None,
        check: bool = True,
        interactive: bool = False,
    ) -> GitResult:
        """Run ``git <args>`` and return its captured output.

        Args:
            args: Arguments after the git binary.
            ctx: Invocation context.  Cancelling it terminates the process.
            operation: Operation name used in error messages.
            target: Ref or branch the call is about, for error messages.
            check: Raise GitCommandError on a non-zero exit.
            interactive: Inherit the terminal instead of capturing output.

        Raises:
            CancelledError: The context was cancelled or a deadline passed.
            GitLockError: A lock file stayed held through every retry.
            GitCommandError: git exited non-zero and ``check`` is True.
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception_type(GitLockError),
            wait=tenacity.wait_exponential(
                multiplier=0.1, max=self._config.lock_retry_max_wait
            ),
            stop=tenacity.stop_after_attempt(self._config.lock_retry_attempts),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(
            self._run_once,
            tuple(args),
            ctx=ctx,
            operation=operation,
            target=target,
            check=check,
            interactive=interactive,
        )

    def _run_once(
        self,
        args: tuple[str, ...],
        *,
        ctx: InvocationContext | None,
        operation: str,
        target: str | None,
        check: bool,
        interactive: bool,
    ) -> GitResult:
        """Execute a single git invocation (no retry)."""
        if ctx is not None and ctx.done:
            raise CancelledError(
                args, "cancelled" if ctx.cancelled else "deadline exceeded"
            )

        argv = [self._config.git_binary, *args]
        logger.debug("git %s (cwd=%s)", " ".join(args), self._cwd)

        pipe = None if interactive else subprocess.PIPE
        try:
            proc = subprocess.Popen(
                argv,
                cwd=self._cwd,
                stdin=None if interactive else subprocess.DEVNULL,
                stdout=pipe,
                stderr=pipe,
                text=True,
                env={**os.environ, **_GIT_ENV},
            )
        except FileNotFoundError as e:
            raise GitCommandError(
                operation, args, 127, str(e), target=target
            ) from e

        stdout, stderr = self._wait(proc, args, ctx)
        result = GitResult(
            args=args,
            returncode=proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
        )
        logger.debug("git %s exited %d", " ".join(args), result.returncode)

        if check and not result.ok:
            error_cls = GitLockError if is_lock_error(result.stderr) else GitCommandError
            raise error_cls(
                operation,
                args,
                result.returncode,
                result.stderr,
                target=target,
                stdout=result.stdout,
            )
        return result

    def _wait(
        self,
        proc: subprocess.Popen,
        args: tuple[str, ...],
        ctx: InvocationContext | None,
    ) -> tuple[Optional[str], Optional[str]]:
        """Wait for the process, terminating it when the context fires."""
        timeout_at = (
            time.monotonic() + self._config.timeout
            if self._config.timeout is not None
            else None
        )
        while True:
            try:
                return proc.communicate(timeout=_POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                reason = None
                if ctx is not None and ctx.cancelled:
                    reason = "cancelled"
                elif ctx is not None and ctx.expired:
                    reason = "deadline exceeded"
                elif timeout_at is not None and time.monotonic() >= timeout_at:
                    reason = f"timed out after {self._config.timeout}s"
                if reason is None:
                    continue
                logger.warning("Terminating git %s: %s", " ".join(args), reason)
                self._terminate(proc)
                raise CancelledError(args, reason) from None

    @staticmethod
    def _terminate(proc: subprocess.Popen) -> None:
        proc.terminate()
        try:
            proc.communicate(timeout=_KILL_GRACE)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.communicate()
