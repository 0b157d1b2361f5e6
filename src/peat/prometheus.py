"""Prometheus HTTP API client.

Thin synchronous facade over /api/v1. Every call takes an explicit timeout,
which is sent to the server as the query timeout and used as the HTTP
read timeout. Callers that must not block (the TUI) run these on worker
threads.

Return shapes mirror the upstream Go client: ``query`` returns
(warnings, vector), every other call returns (data, warnings).

// [LAW:single-enforcer] Transport and API errors become PrometheusError here.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping
from urllib.parse import quote, urlparse

import requests

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


# ─── Errors ──────────────────────────────────────────────────────────────────


class PrometheusError(Exception):
    """Base class for anything the backend call can fail with."""


class PrometheusConnectionError(PrometheusError):
    """Backend unreachable, refused, or timed out."""


class PrometheusAPIError(PrometheusError):
    """Backend answered with ``status: error`` or an unreadable body."""

    def __init__(self, error_type: str, message: str, status_code: int | None = None):
        self.error_type = error_type
        self.message = message
        self.status_code = status_code
        super().__init__(f"{error_type}: {message}" if error_type else message)


class UnexpectedResultType(PrometheusError):
    def __init__(self, result_type: str):
        self.result_type = result_type
        super().__init__(f"unknown result type: {result_type}")


# ─── Value types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Sample:
    """One element of an instant vector."""

    metric: Mapping[str, str]
    value: float
    timestamp: float  # unix seconds


@dataclass(frozen=True)
class SamplePair:
    timestamp: float
    value: float


@dataclass(frozen=True)
class SampleStream:
    """One series of a range matrix."""

    metric: Mapping[str, str]
    values: tuple[SamplePair, ...]


def metric_string(metric: Mapping[str, str]) -> str:
    """Render a labelset in Prometheus notation: ``name{a="x", b="y"}``.

    Labels other than ``__name__`` are sorted by name. A bare metric name
    prints without braces; an empty labelset prints as ``{}``.
    """
    name = metric.get("__name__", "")
    labels = sorted((k, v) for k, v in metric.items() if k != "__name__")
    if name and not labels:
        return name
    body = ", ".join(f"{k}={_quote_label_value(v)}" for k, v in labels)
    return f"{name}{{{body}}}"


def _quote_label_value(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def format_value(value: float) -> str:
    """Prometheus text rendering of a sample value (NaN, +Inf, -Inf)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


# ─── Parse boundary ──────────────────────────────────────────────────────────


def _parse_vector(result: list[dict[str, Any]]) -> list[Sample]:
    samples = []
    for item in result:
        ts, raw = item["value"]
        samples.append(Sample(metric=dict(item.get("metric", {})), value=float(raw), timestamp=float(ts)))
    return samples


def _parse_matrix(result: list[dict[str, Any]]) -> list[SampleStream]:
    streams = []
    for item in result:
        values = tuple(SamplePair(timestamp=float(ts), value=float(raw)) for ts, raw in item.get("values", []))
        streams.append(SampleStream(metric=dict(item.get("metric", {})), values=values))
    return streams


def _unix(moment: datetime) -> str:
    return f"{moment.timestamp():.3f}"


def _seconds(value: timedelta) -> str:
    return f"{value.total_seconds():g}s"


# ─── Client ──────────────────────────────────────────────────────────────────


class Client:
    """Synchronous client for one Prometheus-compatible endpoint."""

    def __init__(self, base_url: str, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self._session = session if session is not None else requests.Session()

    def __repr__(self) -> str:
        return f"Client({self.base_url!r})"

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any],
        timeout: timedelta,
        expect: type = dict,
    ) -> tuple[Any, list[str]]:
        """Call the API and return (data, warnings).

        *expect* is the JSON type of `data`: an object for queries, an array
        for metadata endpoints. Any other shape is a bad_response error.
        """
        url = f"{self.base_url}{API_PREFIX}{path}"
        kwargs: dict[str, Any] = {"timeout": timeout.total_seconds()}
        if method == "POST":
            kwargs["data"] = params
        else:
            kwargs["params"] = params
        logger.debug("%s %s %s", method, url, params)
        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.Timeout as exc:
            raise PrometheusConnectionError(
                f"request to {url} timed out after {timeout.total_seconds():g}s"
            ) from exc
        except requests.RequestException as exc:
            raise PrometheusConnectionError(f"request to {url} failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise PrometheusAPIError(
                "bad_response",
                f"server returned HTTP {resp.status_code} with a non-JSON body",
                resp.status_code,
            ) from exc

        if not isinstance(body, dict):
            raise PrometheusAPIError(
                "bad_response",
                f"server returned HTTP {resp.status_code} with a JSON {type(body).__name__} instead of an object",
                resp.status_code,
            )
        warnings = [str(w) for w in body.get("warnings") or []]
        if body.get("status") != "success":
            raise PrometheusAPIError(
                str(body.get("errorType", "")),
                str(body.get("error", f"HTTP {resp.status_code}")),
                resp.status_code,
            )
        data = body.get("data")
        if not isinstance(data, expect):
            kind = "object" if expect is dict else "array"
            raise PrometheusAPIError(
                "bad_response",
                f"expected a JSON {kind} in data, got {type(data).__name__}",
                resp.status_code,
            )
        return data, warnings

    def query(self, expr: str, timeout: timedelta) -> tuple[list[str], list[Sample]]:
        """Instant query evaluated now. Only vector results are accepted."""
        params = {"query": expr, "timeout": _seconds(timeout)}
        data, warnings = self._request("POST", "/query", params, timeout)
        result_type = data.get("resultType", "")
        if result_type != "vector":
            raise UnexpectedResultType(result_type)
        return warnings, _parse_vector(data.get("result") or [])

    def query_range(
        self,
        expr: str,
        start: datetime,
        end: datetime,
        step: timedelta,
        timeout: timedelta,
    ) -> tuple[list[SampleStream], list[str]]:
        params = {
            "query": expr,
            "start": _unix(start),
            "end": _unix(end),
            "step": _seconds(step),
            "timeout": _seconds(timeout),
        }
        data, warnings = self._request("POST", "/query_range", params, timeout)
        result_type = data.get("resultType", "")
        if result_type != "matrix":
            raise UnexpectedResultType(result_type)
        return _parse_matrix(data.get("result") or []), warnings

    def series(
        self,
        match: str,
        start: datetime,
        end: datetime,
        limit: int,
        timeout: timedelta,
    ) -> tuple[list[dict[str, str]], list[str]]:
        params: dict[str, Any] = {"match[]": match, "start": _unix(start), "end": _unix(end)}
        if limit > 0:
            params["limit"] = str(limit)
        data, warnings = self._request("GET", "/series", params, timeout, expect=list)
        return [dict(labels) for labels in data or []], warnings

    def label_names(
        self, start: datetime, end: datetime, timeout: timedelta
    ) -> tuple[list[str], list[str]]:
        params = {"start": _unix(start), "end": _unix(end)}
        data, warnings = self._request("GET", "/labels", params, timeout, expect=list)
        return [str(name) for name in data or []], warnings

    def label_values(
        self, name: str, start: datetime, end: datetime, timeout: timedelta
    ) -> tuple[list[str], list[str]]:
        params = {"start": _unix(start), "end": _unix(end)}
        data, warnings = self._request("GET", f"/label/{quote(name, safe='')}/values", params, timeout, expect=list)
        return [str(value) for value in data or []], warnings


def new_client(url: str, session: requests.Session | None = None) -> Client:
    """Validate *url* and build a Client. Raises ValueError on a bad URL."""
    if not url:
        raise ValueError(
            "no Prometheus URL configured (use --prometheus-url or PEAT_PROMETHEUS_URL)"
        )
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"invalid Prometheus URL {url!r}: expected http(s)://host[:port]")
    return Client(url, session=session)
