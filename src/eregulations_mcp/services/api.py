"""eRegulations API client.

Fetches raw records over httpx, validates them into record models and keeps
successful results in a TTLCache keyed by request signature. Every public
fetch returns a Result: transport, HTTP and parse failures become
`Err(ErrorTrace)` with a classified ErrorCode instead of exceptions.

Endpoints:
    GET  {base}/Objectives                         procedure tree
    GET  {base}/Procedures/{id}                    procedure detail
    GET  {base}/Procedures/{pid}/Steps/{sid}       single step
    POST {base}/Objectives/Search                  keyword search (JSON string body)

Example:
    >>> async with ERegulationsClient("https://api-tanzania.tradeportal.org") as client:
    ...     result = await client.fetch_procedure_by_id(1246)
    ...     result.map(lambda p: p.display_name).unwrap_or("n/a")
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, TypeVar, runtime_checkable
from urllib.parse import quote

import httpx
import orjson

from eregulations_mcp.foundation.config import Settings, get_settings
from eregulations_mcp.foundation.errors import (
    ErrorCode,
    ErrorTrace,
    Err,
    Ok,
    Result,
    classify_status,
    trace,
    trace_from_exc,
    try_fn,
)
from eregulations_mcp.io.cache import TTLCache
from eregulations_mcp.models import ProcedureDetail, ProcedureSummary, Step
from eregulations_mcp.runtime.observability import get_logger
from eregulations_mcp.runtime.retry import RetryPolicy, execute_with_retry

if TYPE_CHECKING:
    from eregulations_mcp.io.cache import Clock
    from eregulations_mcp.runtime.observability import StructuredLogger
    from eregulations_mcp.runtime.retry.policy import Sleeper

T = TypeVar("T")

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "X-Requested-With": "XMLHttpRequest",
}

# Keys under which the Objectives endpoint may nest its array
_COLLECTION_KEYS = ("items", "results", "data", "procedures", "objectives")
_CHILD_KEYS = ("subMenus", "childs")
# Characters encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


@runtime_checkable
class ProcedureSource(Protocol):
    """What tool handlers need from an upstream client."""

    async def fetch_procedure_summaries(self) -> Result[list[ProcedureSummary], ErrorTrace]: ...
    async def fetch_procedure_by_id(self, procedure_id: int) -> Result[ProcedureDetail, ErrorTrace]: ...
    async def fetch_step(self, procedure_id: int, step_id: int) -> Result[Step, ErrorTrace]: ...
    async def search_by_keyword(self, keyword: str) -> Result[list[ProcedureSummary], ErrorTrace]: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Payload helpers
# ═══════════════════════════════════════════════════════════════════════════════


def normalize_base_url(url: str) -> str:
    """Strip whitespace and trailing slashes; default the scheme to https."""
    url = url.strip().rstrip("/")
    if not url:
        raise ValueError("Base URL cannot be empty")
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def unwrap_collection(payload: Any) -> list[Any]:
    """Locate the array of objectives in whatever shape the endpoint returned."""
    match payload:
        case list():
            return payload
        case dict():
            for key in _COLLECTION_KEYS:
                if isinstance(payload.get(key), list):
                    return payload[key]
            return [payload]
    return []


def flatten_procedures(nodes: Iterable[Any]) -> list[ProcedureSummary]:
    """Flatten the objectives tree into summaries sorted by full name.

    Children live under `subMenus` or `childs`. A child's full name is its
    parent's full name joined with ` > `. Nodes without an integer id are
    skipped but their children are still visited.
    """
    flat: list[ProcedureSummary] = []

    def visit(node: Any, parent: str | None) -> None:
        if not isinstance(node, Mapping):
            return
        ident = node.get("id")
        ident = ident if isinstance(ident, int) and not isinstance(ident, bool) else None
        name = node.get("name") if isinstance(node.get("name"), str) else f"Unnamed #{ident or 'unknown'}"
        full_name = f"{parent} > {name}" if parent else name

        if ident:
            links = node.get("links")
            is_procedure = isinstance(links, list) and any(
                isinstance(link, Mapping) and link.get("rel") == "procedure" for link in links
            )
            flat.append(ProcedureSummary.model_validate({
                **{k: v for k, v in node.items() if k not in _CHILD_KEYS},
                "id": ident,
                "name": name,
                "fullName": full_name,
                "parentName": parent,
                "isProcedure": is_procedure,
            }))

        for key in _CHILD_KEYS:
            children = node.get(key)
            if isinstance(children, list):
                for child in children:
                    visit(child, full_name)

    for node in nodes:
        visit(node, None)
    return sorted(flat, key=lambda p: (p.full_name or "").casefold())


def search_cache_key(keyword: str) -> str:
    return f"search_objectives_{quote(keyword.lower(), safe=_URI_SAFE)}"


def _invalid(message: str, operation: str) -> Result[Any, ErrorTrace]:
    return Err(trace(message, code=ErrorCode.INVALID_PARAMS, recoverable=False).with_operation(operation))


# ═══════════════════════════════════════════════════════════════════════════════
# Client
# ═══════════════════════════════════════════════════════════════════════════════


class ERegulationsClient:
    """Cached, retrying async client for one eRegulations instance.

    Args:
        base_url: API root; defaults to `settings.api.url`
        settings: Configuration (TTLs, retry, timeout); defaults to get_settings()
        cache: Shared cache; a fresh TTLCache is created when omitted
        http: Pre-built httpx client (not closed by this client)
        retry: Retry policy; built from `settings.retry` when omitted
        logger: Structured logger; defaults to get_logger("eregulations.api")
        clock: Time source for the periodic expired-entry sweep
        sleep: Awaitable delay used between retries
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        settings: Settings | None = None,
        cache: TTLCache[Any] | None = None,
        http: httpx.AsyncClient | None = None,
        retry: RetryPolicy | None = None,
        logger: StructuredLogger | None = None,
        clock: Clock = time.time,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._settings = settings or get_settings()
        self._base_url = normalize_base_url(base_url if base_url is not None else self._settings.api.url)
        cache_settings = self._settings.cache
        self._cache: TTLCache[Any] | None = (
            (cache if cache is not None else TTLCache(cache_settings.default_ttl, clock=clock))
            if cache_settings.enabled else None
        )
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            timeout=self._settings.api.timeout,
            headers={**DEFAULT_HEADERS, "User-Agent": self._settings.api.user_agent},
        )
        self._retry = retry or RetryPolicy.from_settings(self._settings.retry)
        self._log = (logger or get_logger("eregulations.api")).bind(base_url=self._base_url)
        self._clock = clock
        self._sleep = sleep
        self._last_sweep = clock()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def cache(self) -> TTLCache[Any] | None:
        return self._cache

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> ERegulationsClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    async def fetch_procedure_summaries(self) -> Result[list[ProcedureSummary], ErrorTrace]:
        """All procedures, flattened from the objectives tree."""

        async def fetch() -> Result[list[ProcedureSummary], ErrorTrace]:
            raw = await self._request("GET", "/Objectives")
            return raw.flat_map(lambda payload: try_fn(
                lambda: flatten_procedures(unwrap_collection(payload)), operation="parse:procedures",
            ))

        result = await self._cached("procedures_list", self._settings.cache.procedures_list_ttl, fetch)
        if result.is_ok():
            self._log.info("procedures listed", count=len(result.unwrap()))
        return result

    async def fetch_procedure_by_id(self, procedure_id: int) -> Result[ProcedureDetail, ErrorTrace]:
        if procedure_id <= 0:
            return _invalid("Procedure ID is required", "fetch_procedure_by_id")

        async def fetch() -> Result[ProcedureDetail, ErrorTrace]:
            raw = await self._request("GET", f"/Procedures/{procedure_id}")
            return raw.flat_map(lambda payload: self._parse_detail(procedure_id, payload))

        return await self._cached(f"procedure_{procedure_id}", self._settings.cache.procedure_ttl, fetch)

    async def fetch_step(self, procedure_id: int, step_id: int) -> Result[Step, ErrorTrace]:
        if procedure_id <= 0:
            return _invalid("Procedure ID is required", "fetch_step")
        if step_id <= 0:
            return _invalid("Step ID is required", "fetch_step")

        async def fetch() -> Result[Step, ErrorTrace]:
            raw = await self._request("GET", f"/Procedures/{procedure_id}/Steps/{step_id}")
            return raw.flat_map(lambda payload: self._parse_step(procedure_id, step_id, payload))

        key = f"procedure_{procedure_id}_step_{step_id}"
        return await self._cached(key, self._settings.cache.step_ttl, fetch)

    async def search_by_keyword(self, keyword: str) -> Result[list[ProcedureSummary], ErrorTrace]:
        keyword = keyword.strip()
        if not keyword:
            return _invalid("Search keyword is required", "search_by_keyword")

        async def fetch() -> Result[list[ProcedureSummary], ErrorTrace]:
            raw = await self._request("POST", "/Objectives/Search", json_body=keyword)
            return raw.flat_map(lambda payload: try_fn(
                lambda: [ProcedureSummary.model_validate(item) for item in payload if isinstance(item, Mapping)]
                if isinstance(payload, list) else [],
                operation="parse:search",
            ))

        result = await self._cached(search_cache_key(keyword), self._settings.cache.search_ttl, fetch)
        if result.is_ok():
            self._log.info("search completed", keyword=keyword, count=len(result.unwrap()))
        return result

    # ─────────────────────────────────────────────────────────────────
    # Parsing
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _parse_detail(procedure_id: int, payload: Any) -> Result[ProcedureDetail, ErrorTrace]:
        if not isinstance(payload, Mapping) or not payload:
            return Err(trace(f"Failed to get data for procedure {procedure_id}", code=ErrorCode.NOT_FOUND)
                       .with_operation("parse:procedure", procedure_id=procedure_id))
        merged = {
            **payload,
            "id": payload.get("id") or procedure_id,
            "name": payload.get("name") or f"Procedure {procedure_id}",
        }
        return try_fn(lambda: ProcedureDetail.model_validate(merged), operation="parse:procedure")

    @staticmethod
    def _parse_step(procedure_id: int, step_id: int, payload: Any) -> Result[Step, ErrorTrace]:
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(data, Mapping):
            return Err(trace(f"Failed to get step {step_id} for procedure {procedure_id}", code=ErrorCode.NOT_FOUND)
                       .with_operation("parse:step", procedure_id=procedure_id, step_id=step_id))
        merged = {"id": step_id, "name": "Unknown", **data, "procedureId": procedure_id}
        return try_fn(lambda: Step.model_validate(merged), operation="parse:step")

    # ─────────────────────────────────────────────────────────────────
    # Transport & cache
    # ─────────────────────────────────────────────────────────────────

    async def _cached(
        self,
        key: str,
        ttl: float,
        fetch: Callable[[], Awaitable[Result[T, ErrorTrace]]],
    ) -> Result[T, ErrorTrace]:
        """Serve key from cache, or fetch and cache a successful result."""
        if self._cache is None:
            return await fetch()

        self._sweep_if_due()
        if (hit := self._cache.get(key)) is not None:
            self._log.debug("cache hit", key=key)
            return Ok(hit)

        self._log.debug("cache miss", key=key)
        result = await fetch()
        if result.is_ok():
            self._cache.set(key, result.unwrap(), ttl)
        return result

    def _sweep_if_due(self) -> None:
        now = self._clock()
        if self._cache is None or now - self._last_sweep < self._settings.cache.cleanup_interval:
            return
        self._last_sweep = now
        removed = self._cache.clean_expired()
        self._log.info("expired cache entries removed", removed=removed, remaining=self._cache.size)

    async def _request(self, method: str, path: str, *, json_body: Any = None) -> Result[Any, ErrorTrace]:
        url = f"{self._base_url}{path}"
        operation = f"{method} {path}"

        async def attempt() -> Result[Any, ErrorTrace]:
            self._log.debug("request", method=method, path=path)
            try:
                response = await self._http.request(
                    method,
                    url,
                    content=orjson.dumps(json_body) if json_body is not None else None,
                    headers={"Content-Type": "application/json"} if json_body is not None else None,
                )
                response.raise_for_status()
                return Ok(response.json() if response.content else None)
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                code = classify_status(status)
                return Err(trace(f"API returned HTTP {status} for {path}", code=code)
                           .with_operation(operation, status=status))
            except (httpx.HTTPError, ValueError) as e:
                return Err(trace_from_exc(e, operation=operation))

        result = await execute_with_retry(attempt, self._retry, name=operation, logger=self._log, sleep=self._sleep)
        if result.is_err():
            self._log.error("request failed", method=method, path=path, error=result.unwrap_err().message,
                            code=result.unwrap_err().error_code)
        return result
