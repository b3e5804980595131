"""Tests for the httpx-backed primitives."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pytest

from apiwrap.client.primitives import HttpxPrimitives
from apiwrap.exceptions import (
    AuthError,
    ConfigError,
    ConnectionError_,
    NotFoundError,
    ServerError,
)
from apiwrap.models import ClientConfig, Verb
from apiwrap.registry import register_backend


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_config(
    base_url: str = "https://api.example.com",
    max_retries: int = 3,
    **kwargs: Any,
) -> ClientConfig:
    return ClientConfig(base_url=base_url, max_retries=max_retries, **kwargs)


def _json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        headers={"content-type": "application/json"},
        json=data,
    )


class _Capture:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


# ---------------------------------------------------------------------------
# Context manager
# ---------------------------------------------------------------------------


class TestContextManager:
    def test_enter_creates_client(self) -> None:
        client = HttpxPrimitives(_make_config())
        assert client._client is None
        with client:
            assert client._client is not None
        assert client._client is None

    def test_request_outside_context_fails(self) -> None:
        client = HttpxPrimitives(_make_config())
        with pytest.raises(AssertionError, match="context manager"):
            client.request("GET", "/x")


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TestRequest:
    def test_get_with_params(self) -> None:
        capture = _Capture(_json_response([{"number": 1}]))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            result = client.request(
                Verb.GET, "/repos/a/b/issues", [("state", "open"), ("labels", "bug")]
            )

        assert result == [{"number": 1}]
        request = capture.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/repos/a/b/issues"
        assert request.url.params.multi_items() == [("state", "open"), ("labels", "bug")]

    def test_repeated_params_kept(self) -> None:
        capture = _Capture(_json_response([]))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            client.request("GET", "/issues", [("labels", "a"), ("labels", "b")])
        assert capture.requests[0].url.params.get_list("labels") == ["a", "b"]

    def test_none_params_dropped(self) -> None:
        capture = _Capture(_json_response([]))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            client.request("GET", "/issues", [("state", None), ("page", 2)])
        assert capture.requests[0].url.params.multi_items() == [("page", "2")]

    def test_post_sends_json(self) -> None:
        capture = _Capture(_json_response({"id": 7}, status_code=201))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            result = client.request("post", "/repos/a/b/issues", [], {"title": "Bug"})

        assert result == {"id": 7}
        request = capture.requests[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"title": "Bug"}

    def test_head_returns_none(self) -> None:
        capture = _Capture(httpx.Response(204))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            assert client.request("HEAD", "/repos/a/b") is None

    def test_extra_headers(self) -> None:
        capture = _Capture(_json_response({}))
        config = _make_config(headers={"X-Client": "apiwrap"})
        with HttpxPrimitives(config, transport=capture.transport) as client:
            client.request("GET", "/")
        assert capture.requests[0].headers["X-Client"] == "apiwrap"
        assert capture.requests[0].headers["Accept"] == "application/json"


class TestAuthorization:
    def test_explicit_token(self) -> None:
        capture = _Capture(_json_response({}))
        with HttpxPrimitives(_make_config(), token="abc", transport=capture.transport) as client:
            client.request("GET", "/user")
        assert capture.requests[0].headers["Authorization"] == "token abc"

    def test_token_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APIWRAP_TEST_TOKEN", "from-env")
        capture = _Capture(_json_response({}))
        config = _make_config(token_source="env:APIWRAP_TEST_TOKEN", auth_scheme="Bearer")
        with HttpxPrimitives(config, transport=capture.transport) as client:
            client.request("GET", "/user")
        assert capture.requests[0].headers["Authorization"] == "Bearer from-env"

    def test_missing_token_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("APIWRAP_TEST_TOKEN", raising=False)
        config = _make_config(token_source="env:APIWRAP_TEST_TOKEN")
        with pytest.raises(ConfigError):
            with HttpxPrimitives(config):
                pass

    def test_no_token(self) -> None:
        capture = _Capture(_json_response({}))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            client.request("GET", "/")
        assert "Authorization" not in capture.requests[0].headers


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    @patch("apiwrap.client.primitives.time.sleep")
    def test_retry_on_500_then_success(self, mock_sleep: MagicMock) -> None:
        capture = _Capture(httpx.Response(500), _json_response({"ok": True}))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            assert client.request("GET", "/") == {"ok": True}
        assert len(capture.requests) == 2
        mock_sleep.assert_called_once_with(1)

    @patch("apiwrap.client.primitives.time.sleep")
    def test_exponential_backoff_then_server_error(self, mock_sleep: MagicMock) -> None:
        capture = _Capture(httpx.Response(503))
        with HttpxPrimitives(_make_config(max_retries=3), transport=capture.transport) as client:
            with pytest.raises(ServerError) as exc_info:
                client.request("GET", "/")
        assert exc_info.value.status_code == 503
        assert len(capture.requests) == 4
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2, 4]

    @patch("apiwrap.client.primitives.time.sleep")
    def test_connection_error_retried(self, mock_sleep: MagicMock) -> None:
        capture = _Capture(httpx.ConnectError("refused"), _json_response([]))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            assert client.request("GET", "/") == []
        assert mock_sleep.call_count == 1

    @patch("apiwrap.client.primitives.time.sleep")
    def test_connection_error_exhausted(self, mock_sleep: MagicMock) -> None:
        capture = _Capture(httpx.ConnectError("refused"))
        with HttpxPrimitives(_make_config(max_retries=2), transport=capture.transport) as client:
            with pytest.raises(ConnectionError_, match="after 3 attempts"):
                client.request("GET", "/")
        assert len(capture.requests) == 3

    def test_no_retry_on_4xx(self) -> None:
        capture = _Capture(httpx.Response(422, json={"message": "Validation Failed"}))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            with pytest.raises(ServerError, match="Validation Failed"):
                client.request("GET", "/")
        assert len(capture.requests) == 1


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, status: int) -> None:
        capture = _Capture(httpx.Response(status, json={"message": "Bad credentials"}))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            with pytest.raises(AuthError, match="Bad credentials") as exc_info:
                client.request("GET", "/user")
        assert exc_info.value.status_code == status

    def test_not_found(self) -> None:
        capture = _Capture(httpx.Response(404, json={"message": "Not Found"}))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            with pytest.raises(NotFoundError, match="HTTP 404: Not Found"):
                client.request("GET", "/repos/a/missing")

    def test_plain_text_error_body(self) -> None:
        capture = _Capture(httpx.Response(418, text="I'm a teapot"))
        with HttpxPrimitives(_make_config(), transport=capture.transport) as client:
            with pytest.raises(ServerError, match="teapot"):
                client.request("GET", "/")


# ---------------------------------------------------------------------------
# Primitives wired into a backend
# ---------------------------------------------------------------------------


class TestPrimitives:
    def test_one_per_verb(self) -> None:
        with HttpxPrimitives(_make_config()) as client:
            primitives = client.primitives()
        assert set(primitives) == set(Verb)
        assert primitives[Verb.PATCH].__name__ == "patch_primitive"

    def test_generated_function_end_to_end(self, registry) -> None:
        capture = _Capture(_json_response([{"number": 42}]))
        with HttpxPrimitives(_make_config(), token="t", transport=capture.transport) as client:
            github = register_backend(
                "GitHub",
                "ghubp",
                {},
                lambda version, fragment: f"https://developer.github.com/v{version}/{fragment}",
                client.primitives(),
                registry=registry,
            )
            list_issues = github.get(
                "/repos/:owner/:repo/issues",
                "List issues for a repository.",
                3,
                "issues/#list-issues-for-a-repository",
                ("repo", "/repos/:owner.login/:name/issues"),
            )
            result = list_issues(
                {"owner": {"login": "vermiculus"}, "name": "ghub-plus"}, state="closed"
            )

        assert result == [{"number": 42}]
        request = capture.requests[0]
        assert request.url.path == "/repos/vermiculus/ghub-plus/issues"
        assert request.url.params["state"] == "closed"
        assert request.headers["Authorization"] == "token t"
