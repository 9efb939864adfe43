"""Branch classification rules for gzgit.

Protection patterns form a narrow grammar: an exact branch
name, or ``prefix/*`` where ``*`` stands for exactly one more path segment.
``release/*`` matches ``release/v1.0`` but neither ``release`` nor
``release/v1/rc``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Union

from gzgit.exceptions import InvalidArgumentError
from gzgit.models.branch import BranchType
from gzgit.models.config import DEFAULT_PROTECTED_BRANCHES


@dataclass(frozen=True)
class ExactRule:
    """Matches one branch name exactly."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PrefixWildcardRule:
    """Matches ``prefix/<segment>`` for a single non-empty segment."""

    prefix: str

    def __str__(self) -> str:
        return f"{self.prefix}/*"


ProtectionRule = Union[ExactRule, PrefixWildcardRule]


def parse_rule(pattern: str) -> ProtectionRule:
    """Build a rule from its textual pattern.

    Raises:
        InvalidArgumentError: If the pattern is empty, or uses ``*`` anywhere
            but as a whole trailing segment after a non-empty prefix.
    """
    if not pattern:
        raise InvalidArgumentError("protection pattern cannot be empty")
    wildcard = pattern.endswith("/*")
    prefix = pattern[:-2] if wildcard else pattern
    if "*" in prefix or not prefix:
        raise InvalidArgumentError(
            f"Invalid protection pattern '{pattern}': only a trailing '/*' is supported"
        )
    if wildcard:
        return PrefixWildcardRule(prefix)
    return ExactRule(pattern)


def parse_rules(patterns: Iterable[str]) -> tuple[ProtectionRule, ...]:
    return tuple(parse_rule(p) for p in patterns)


DEFAULT_RULES: tuple[ProtectionRule, ...] = parse_rules(DEFAULT_PROTECTED_BRANCHES)


def matches(rule: ProtectionRule, name: str) -> bool:
    """True when ``name`` satisfies ``rule``."""
    if isinstance(rule, ExactRule):
        return name == rule.name
    if isinstance(rule, PrefixWildcardRule):
        head, sep, segment = name.rpartition("/")
        return bool(sep) and head == rule.prefix and bool(segment)
    raise TypeError(f"Unknown protection rule: {rule!r}")


def is_protected(
    name: str,
    rules: Sequence[ProtectionRule] | None = None,
) -> bool:
    """True when any rule protects ``name``.  Defaults to the built-in list."""
    active = DEFAULT_RULES if rules is None else rules
    return any(matches(rule, name) for rule in active)


_TYPE_PREFIXES: dict[str, BranchType] = {
    "feature": BranchType.FEATURE,
    "fix": BranchType.FIX,
    "hotfix": BranchType.HOTFIX,
    "release": BranchType.RELEASE,
    "experiment": BranchType.EXPERIMENT,
}


def infer_type(name: str) -> BranchType:
    """Naming category from the first path segment of ``name``.

    Names without a ``/`` are always OTHER.  Independent of protection.
    """
    first, sep, _ = name.partition("/")
    if not sep:
        return BranchType.OTHER
    return _TYPE_PREFIXES.get(first, BranchType.OTHER)
