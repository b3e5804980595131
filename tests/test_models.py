"""Tests for apiwrap.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from apiwrap.models import ClientConfig, Interpolation, ResourceSpec, Verb


class TestVerb:
    @pytest.mark.parametrize("raw", ["get", "GET", " Get ", Verb.GET])
    def test_parse(self, raw) -> None:
        assert Verb.parse(raw) is Verb.GET

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError):
            Verb.parse("FETCH")

    def test_str_enum(self) -> None:
        assert Verb.DELETE == "DELETE"


class TestInterpolation:
    def test_of_pair(self) -> None:
        interp = Interpolation.of(("repo", "/repos/:owner.login/:name"))
        assert interp.params == ("repo",)
        assert interp.param_name == "repo"
        assert interp.path_template == "/repos/:owner.login/:name"

    def test_of_several_params(self) -> None:
        interp = Interpolation.of((["repo", "issue"], "/x/:repo.id/:issue.number"))
        assert interp.params == ("repo", "issue")
        assert interp.param_name == "repo"

    def test_of_mapping(self) -> None:
        interp = Interpolation.of({"params": ["user"], "path_template": "/users/:login"})
        assert interp.param_name == "user"

    def test_of_instance_returned(self) -> None:
        interp = Interpolation(params=("a",), path_template="/:x")
        assert Interpolation.of(interp) is interp

    def test_requires_a_param(self) -> None:
        with pytest.raises(ValidationError):
            Interpolation(params=(), path_template="/x")

    def test_frozen(self) -> None:
        interp = Interpolation(params=("a",), path_template="/:x")
        with pytest.raises(ValidationError):
            interp.path_template = "/y"  # type: ignore[misc]


class TestResourceSpec:
    def test_defaults(self) -> None:
        spec = ResourceSpec(verb="get", default_path="/issues")
        assert spec.verb is Verb.GET
        assert spec.docstring == ""
        assert spec.api_version == 3
        assert spec.doc_fragment == ""
        assert spec.interpolation is None
        assert spec.extra_params == ()
        assert spec.effective_path == "/issues"

    def test_interpolation_pair(self) -> None:
        spec = ResourceSpec(
            verb="GET",
            default_path="/repos/:owner/:repo",
            interpolation=("repo", "/repos/:owner.login/:name"),
        )
        assert spec.effective_path == "/repos/:owner.login/:name"

    def test_bad_interpolation_shape(self) -> None:
        with pytest.raises(ValidationError):
            ResourceSpec(verb="GET", default_path="/x", interpolation=("repo",))

    def test_non_iterable_interpolation(self) -> None:
        with pytest.raises(ValidationError):
            ResourceSpec(verb="GET", default_path="/x", interpolation=42)

    def test_empty_path(self) -> None:
        with pytest.raises(ValidationError):
            ResourceSpec(verb="GET", default_path="")

    def test_unknown_verb(self) -> None:
        with pytest.raises(ValidationError):
            ResourceSpec(verb="FETCH", default_path="/x")

    def test_extra_params_from_list(self) -> None:
        spec = ResourceSpec(verb="GET", default_path="/x", extra_params=["a", "b"])
        assert spec.extra_params == ("a", "b")


class TestClientConfig:
    def test_defaults(self) -> None:
        config = ClientConfig()
        assert config.base_url == ""
        assert config.token_source is None
        assert config.auth_scheme == "token"
        assert config.timeout == 30.0
        assert config.verify_ssl is True
        assert config.max_retries == 3
        assert config.headers == {}

    def test_negative_retries(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(max_retries=-1)

    def test_timeout_from_string(self) -> None:
        assert ClientConfig(timeout="5").timeout == 5.0
