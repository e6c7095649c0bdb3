"""
Rules file loading and validation tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from src.rules.loader import (
    DEFAULT_RULES_FILENAME,
    RULES_PATH_ENV,
    load_rules,
    parse_rules,
    resolve_rules_path,
)

MINIMAL_RULES = """
project:
  slug: test
  rules_version: "0.1"
"""


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


class TestLoadRules:
    def test_project_rules_file_loads(self, project_root: Path) -> None:
        rules = load_rules(project_root / DEFAULT_RULES_FILENAME)

        assert rules.project.slug == "effective-study-time"
        assert rules.daily_limit.default_seconds == 28800
        assert rules.validation.interaction_timeout_seconds == 300
        assert rules.signals.continuity_gap_seconds == 120
        assert rules.quality.weights.focus == 0.4
        assert rules.quality.review_quality_threshold == 6.0
        assert rules.quality.review_focus_threshold == 0.7
        assert "window_blur" in rules.signals.unfocused_actions

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "nope.yaml")

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text(MINIMAL_RULES)
        monkeypatch.setenv(RULES_PATH_ENV, str(path))

        assert resolve_rules_path() == path
        assert load_rules().project.slug == "test"

    def test_explicit_path_beats_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(RULES_PATH_ENV, str(tmp_path / "env.yaml"))
        explicit = tmp_path / "explicit.yaml"

        assert resolve_rules_path(explicit) == explicit


class TestParseRules:
    def test_defaults_fill_missing_sections(self) -> None:
        rules = parse_rules(MINIMAL_RULES)

        assert rules.daily_limit.default_seconds == 28800
        assert rules.daily_limit.user_overrides == {}
        assert rules.quality.hold_for_review is False
        assert rules.batch.max_workers is None
        assert rules.signals.interactive_actions == ["click", "scroll", "key_press", "video_control"]

    def test_user_overrides(self) -> None:
        rules = parse_rules(
            MINIMAL_RULES + "daily_limit:\n  user_overrides:\n    user-7: 14400\n"
        )
        assert rules.daily_limit.user_overrides == {"user-7": 14400}

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ValueError, match="Invalid YAML"):
            parse_rules("project: [unclosed")

    def test_non_mapping(self) -> None:
        with pytest.raises(ValueError, match="mapping"):
            parse_rules("- just\n- a list\n")

    def test_missing_project(self) -> None:
        with pytest.raises(ValueError, match="validation failed"):
            parse_rules("validation:\n  interaction_timeout_seconds: 300\n")

    def test_weights_must_sum_to_one(self) -> None:
        with pytest.raises(ValueError):
            parse_rules(
                MINIMAL_RULES
                + "quality:\n  weights:\n    focus: 0.5\n    interaction: 0.5\n    continuity: 0.5\n"
            )

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_rules(MINIMAL_RULES + "validation:\n  interaction_timeout_seconds: 0\n")
