"""Tests for protection rules and branch type inference."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gzgit.exceptions import InvalidArgumentError
from gzgit.models.branch import Branch, BranchType
from gzgit.models.config import GzgitConfig
from gzgit.operations.protection import (
    ExactRule,
    PrefixWildcardRule,
    infer_type,
    is_protected,
    parse_rule,
    parse_rules,
)


class TestIsProtected:
    @pytest.mark.parametrize(
        "name",
        ["main", "master", "develop", "development", "release/v1.0", "hotfix/urgent"],
    )
    def test_default_protected(self, name):
        assert is_protected(name) is True

    @pytest.mark.parametrize(
        "name",
        [
            "release",  # no trailing segment
            "hotfix",
            "feature/x",
            "main-backup",
            "release/v1/rc1",  # one segment only
            "my/release/v1",
        ],
    )
    def test_default_not_protected(self, name):
        assert is_protected(name) is False

    def test_custom_rules(self):
        rules = parse_rules(["trunk", "stable/*"])
        assert is_protected("trunk", rules)
        assert is_protected("stable/2024", rules)
        assert not is_protected("main", rules)

    def test_empty_rules_protect_nothing(self):
        assert not is_protected("main", ())


class TestParseRule:
    def test_exact(self):
        assert parse_rule("main") == ExactRule("main")

    def test_wildcard(self):
        assert parse_rule("release/*") == PrefixWildcardRule("release")

    def test_str_round_trips(self):
        assert str(parse_rule("release/*")) == "release/*"
        assert str(parse_rule("main")) == "main"

    @pytest.mark.parametrize("pattern", ["*", "feat*", "release/*/rc", "a*/b", "/*", "**/*"])
    def test_misplaced_wildcard_rejected(self, pattern):
        with pytest.raises(InvalidArgumentError, match="only a trailing"):
            parse_rule(pattern)

    def test_empty_pattern_rejected(self):
        with pytest.raises(InvalidArgumentError, match="cannot be empty"):
            parse_rule("")

    def test_bad_pattern_fails_the_whole_list(self):
        with pytest.raises(InvalidArgumentError, match=r"feat\*"):
            parse_rules(["main", "feat*"])

    def test_config_rejects_bad_pattern(self):
        with pytest.raises(ValidationError, match="only a trailing"):
            GzgitConfig(protected_branches=["main", "*"])

    def test_config_accepts_valid_patterns(self):
        config = GzgitConfig(protected_branches=["trunk", "stable/*"])
        assert parse_rules(config.protected_branches) == (
            ExactRule("trunk"),
            PrefixWildcardRule("stable"),
        )


class TestInferType:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("feature/user-auth", BranchType.FEATURE),
            ("fix/typo", BranchType.FIX),
            ("hotfix/urgent", BranchType.HOTFIX),
            ("release/v1.0", BranchType.RELEASE),
            ("experiment/idea", BranchType.EXPERIMENT),
            ("chore/deps", BranchType.OTHER),
            ("main", BranchType.OTHER),
            ("feature", BranchType.OTHER),
        ],
    )
    def test_prefix_mapping(self, name, expected):
        assert infer_type(name) == expected

    def test_protection_does_not_change_type(self):
        assert is_protected("release/v2")
        assert infer_type("release/v2") == BranchType.RELEASE

    def test_branch_type_property(self):
        b = Branch(name="fix/bug-1", ref="refs/heads/fix/bug-1", revision="abc1234")
        assert b.branch_type == BranchType.FIX
