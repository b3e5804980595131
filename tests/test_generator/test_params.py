"""Tests for parameter name mapping."""

from __future__ import annotations

import pytest

from apiwrap.generator.params import map_parameter, merge_param_names, sanitize_param_name


class TestSanitizeParamName:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("repo", "repo"),
            ("orgName", "org_name"),
            ("team-slug", "team_slug"),
            ("HTTPStatus", "http_status"),
            ("a.b", "a_b"),
            ("class", "class_"),
            ("2fa", "_2fa"),
            ("--", "param"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str) -> None:
        assert sanitize_param_name(raw) == expected


class TestMapParameter:
    def test_glossary_hit(self, github) -> None:
        desc = map_parameter("repo", github.config, is_object=True)
        assert desc == {
            "name": "repo",
            "original_name": "repo",
            "help": "A repository object, as returned by the API.",
            "is_object": True,
        }

    def test_glossary_miss(self, github) -> None:
        desc = map_parameter("team-slug", github.config)
        assert desc["name"] == "team_slug"
        assert desc["original_name"] == "team-slug"
        assert desc["help"] is None
        assert desc["is_object"] is False


class TestMergeParamNames:
    def test_keeps_first_occurrence(self) -> None:
        assert merge_param_names(("a", "b"), ["b", "c", "a"]) == ["a", "b", "c"]

    def test_exclude(self) -> None:
        assert merge_param_names(("repo", "path"), exclude=("repo",)) == ["path"]

    def test_empty(self) -> None:
        assert merge_param_names() == []
