"""Configuration models for gzgit.

GzgitConfig holds per-repository-handle settings: which git binary to run,
which branches are protected, and how lock contention is retried.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_PROTECTED_BRANCHES: tuple[str, ...] = (
    "main",
    "master",
    "develop",
    "development",
    "release/*",
    "hotfix/*",
)


class GzgitConfig(BaseModel):
    """Per-repository configuration."""

    git_binary: str = "git"
    protected_branches: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROTECTED_BRANCHES)
    )
    lock_retry_attempts: int = Field(default=3, ge=1)  # 1 = no retry
    lock_retry_max_wait: float = Field(default=2.0, gt=0)
    timeout: Optional[float] = None  # Seconds per git call; None = unbounded
    default_remote: str = "origin"

    @field_validator("protected_branches")
    @classmethod
    def _check_protection_patterns(cls, v: list[str]) -> list[str]:
        """Reject patterns the protection grammar cannot express."""
        from gzgit.operations.protection import parse_rules

        parse_rules(v)
        return v
