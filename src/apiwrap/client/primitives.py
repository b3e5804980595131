"""Synchronous httpx primitives with token auth, retry, and error mapping.

This module provides :class:`HttpxPrimitives`, a ready-made supplier of the
per-verb primitives a backend needs.  It wraps :class:`httpx.Client` and
layers on:

- **Token injection** -- an ``Authorization`` header built from a credential
  source (``env:VAR`` or ``file:/path``).
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Error mapping** -- 401/403, 404 and other error statuses become
  :class:`~apiwrap.exceptions.HTTPError` subclasses.
- **Body decoding** -- responses are returned as decoded JSON, text, or
  ``None`` when empty.

Generated functions pass the primitive's return value and exceptions
through untouched, so whatever this module returns or raises is what callers
of generated functions see.

Example::

    with HttpxPrimitives(resolve_client_config()) as client:
        github = register_backend("GitHub", "ghubp", glossary, link, client.primitives())
        issues = github.get("/issues", "List issues.", 3, "issues/#list-issues")
        issues(state="open")
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from apiwrap.client.response import extract_response_data
from apiwrap.config import resolve_credential
from apiwrap.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from apiwrap.generator.arguments import RequestParams
from apiwrap.models import ClientConfig, Verb

logger = logging.getLogger(__name__)


class HttpxPrimitives:
    """Per-verb primitives backed by one :class:`httpx.Client`.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        config: Base URL, credential source, timeout and retry settings.
        token: Explicit token; takes precedence over ``config.token_source``.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
    """

    def __init__(
        self,
        config: ClientConfig,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._token = token
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpxPrimitives:
        headers = {"Accept": "application/json"}
        headers.update(self._config.headers)
        token = self._token
        if token is None and self._config.token_source:
            token = resolve_credential(self._config.token_source)
        if token:
            headers["Authorization"] = f"{self._config.auth_scheme} {token}"

        self._client = httpx.Client(
            base_url=self._config.base_url,
            headers=headers,
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Primitives
    # ------------------------------------------------------------------ #

    def request(
        self,
        verb: Verb | str,
        path: str,
        params: Optional[RequestParams] = None,
        data: Any = None,
    ) -> Any:
        """Send one request and return its decoded body.

        Parameters whose value is ``None`` are left out of the query string.
        ``data`` is sent as a JSON body when given.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On 5xx after all retries, and other error statuses.
            ConnectionError_: On network / timeout errors after all retries.
        """
        method = Verb.parse(verb).value
        query = [(key, value) for key, value in (params or []) if value is not None]
        response = self._execute_with_retry(method, path, query, data)
        _map_response_error(response)
        return extract_response_data(response)

    def primitive(self, verb: Verb | str) -> Callable[..., Any]:
        """Return the primitive ``(path, params, data) -> Any`` for *verb*."""
        bound_verb = Verb.parse(verb)

        def _primitive(path: str, params: RequestParams, data: Any = None) -> Any:
            return self.request(bound_verb, path, params, data)

        _primitive.__name__ = f"{bound_verb.value.lower()}_primitive"
        return _primitive

    def primitives(self) -> dict[Verb, Callable[..., Any]]:
        """Return a primitive for every verb, ready for backend registration."""
        return {verb: self.primitive(verb) for verb in Verb}

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        params: RequestParams,
        data: Any,
    ) -> httpx.Response:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._config.max_retries
        for attempt in range(max_retries + 1):
            try:
                kwargs: dict[str, Any] = {
                    "method": method,
                    "url": path,
                    "params": params,
                }
                if data is not None:
                    kwargs["json"] = data
                response = self._client.request(**kwargs)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection error: %s, retrying in %ss (attempt %d/%d)",
                        exc, delay, attempt + 1, max_retries,
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                continue
            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except ValueError:
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix

    if status in (401, 403):
        raise AuthError(full_msg, status_code=status)
    if status == 404:
        raise NotFoundError(full_msg, status_code=status)
    raise ServerError(full_msg, status_code=status)
