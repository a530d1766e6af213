"""Tests for the eRegulations API client against a mocked HTTP transport."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import orjson
import pytest

from eregulations_mcp.foundation.errors import ErrorCode
from eregulations_mcp.services import (
    ERegulationsClient,
    ProcedureSource,
    flatten_procedures,
    normalize_base_url,
    search_cache_key,
    unwrap_collection,
)

from .conftest import PROCEDURE_PAYLOAD, STEP_PAYLOAD

OBJECTIVES = [
    {"id": 10, "name": "Business", "links": [], "subMenus": [
        {"id": 11, "name": "Company registration", "isOnline": True, "links": [{"rel": "procedure"}]},
        {"name": "Group", "childs": [{"id": 12, "name": "Annual returns"}]},
    ]},
    {"id": 5, "name": "Agriculture"},
    {"id": "x", "name": "Bad id"},
]

Responder = Callable[[httpx.Request], httpx.Response]


class Upstream:
    """Records requests and answers them with a scripted responder."""

    def __init__(self, responder: Responder) -> None:
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_client(settings, silent_logger, clock, sleeps):
    def factory(responder: Responder, **overrides: Any) -> tuple[ERegulationsClient, Upstream]:
        upstream = Upstream(responder)

        async def sleep(delay: float) -> None:
            sleeps.append(delay)

        client = ERegulationsClient(
            settings=overrides.pop("settings", settings),
            http=httpx.AsyncClient(transport=httpx.MockTransport(upstream)),
            logger=silent_logger,
            clock=clock,
            sleep=sleep,
            **overrides,
        )
        return client, upstream

    return factory


def ok(payload: Any) -> Responder:
    return lambda request: httpx.Response(200, json=payload)


# ═════════════════════════════════════════════════════════════════════════════
# Payload helpers
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(("raw", "expected"), [
    ("api.example.org/", "https://api.example.org"),
    ("  https://api.example.org//  ", "https://api.example.org"),
    ("http://localhost:8000", "http://localhost:8000"),
])
def test_normalize_base_url(raw: str, expected: str) -> None:
    assert normalize_base_url(raw) == expected


def test_normalize_base_url_rejects_empty() -> None:
    with pytest.raises(ValueError, match="Base URL cannot be empty"):
        normalize_base_url("   ")


def test_unwrap_collection() -> None:
    assert unwrap_collection([1, 2]) == [1, 2]
    assert unwrap_collection({"items": [1]}) == [1]
    assert unwrap_collection({"id": 1}) == [{"id": 1}]
    assert unwrap_collection("nope") == []


def test_flatten_procedures_walks_both_child_keys() -> None:
    flat = flatten_procedures(OBJECTIVES)

    assert [p.id for p in flat] == [5, 10, 11, 12]
    assert [p.full_name for p in flat] == [
        "Agriculture",
        "Business",
        "Business > Company registration",
        "Business > Group > Annual returns",
    ]
    registration = flat[2]
    assert registration.parent_name == "Business"
    assert registration.is_procedure is True
    assert registration.is_online is True
    assert flat[3].parent_name == "Business > Group"
    assert flat[0].is_procedure is False


def test_search_cache_key_is_case_insensitive() -> None:
    assert search_cache_key("Company Registration") == "search_objectives_company%20registration"
    assert search_cache_key("import (goods)") == "search_objectives_import%20(goods)"


# ═════════════════════════════════════════════════════════════════════════════
# Client
# ═════════════════════════════════════════════════════════════════════════════


def test_client_satisfies_source_protocol(make_client) -> None:
    client, _ = make_client(ok([]))
    assert isinstance(client, ProcedureSource)
    assert client.base_url == "https://api.example.org"


def test_client_requires_base_url(settings, silent_logger) -> None:
    empty = settings.model_copy(update={"api": settings.api.model_copy(update={"url": ""})})
    with pytest.raises(ValueError):
        ERegulationsClient(settings=empty, logger=silent_logger)


@pytest.mark.asyncio
async def test_procedure_summaries_are_flattened_and_cached(make_client) -> None:
    client, upstream = make_client(ok(OBJECTIVES))

    first = await client.fetch_procedure_summaries()
    second = await client.fetch_procedure_summaries()

    assert [p.id for p in first.unwrap()] == [5, 10, 11, 12]
    assert second.unwrap() == first.unwrap()
    assert len(upstream.requests) == 1
    assert upstream.requests[0].method == "GET"
    assert str(upstream.requests[0].url) == "https://api.example.org/Objectives"
    assert client.cache is not None and client.cache.has("procedures_list")


@pytest.mark.asyncio
async def test_wrapped_collection_is_unwrapped(make_client) -> None:
    client, _ = make_client(ok({"items": OBJECTIVES[:2]}))
    result = await client.fetch_procedure_summaries()
    assert len(result.unwrap()) == 4


@pytest.mark.asyncio
async def test_cache_disabled_always_fetches(make_client, settings) -> None:
    no_cache = settings.model_copy(update={"cache": settings.cache.model_copy(update={"enabled": False})})
    client, upstream = make_client(ok(OBJECTIVES), settings=no_cache)

    await client.fetch_procedure_summaries()
    await client.fetch_procedure_summaries()

    assert client.cache is None
    assert len(upstream.requests) == 2


@pytest.mark.asyncio
async def test_cached_entry_expires_after_ttl(make_client, clock) -> None:
    client, upstream = make_client(ok(PROCEDURE_PAYLOAD))

    await client.fetch_procedure_by_id(1246)
    clock.advance(7 * 24 * 3600 - 1)
    await client.fetch_procedure_by_id(1246)
    assert len(upstream.requests) == 1

    clock.advance(1)
    await client.fetch_procedure_by_id(1246)
    assert len(upstream.requests) == 2


@pytest.mark.asyncio
async def test_periodic_sweep_removes_expired_entries(make_client, clock) -> None:
    client, _ = make_client(ok(OBJECTIVES))
    await client.fetch_procedure_summaries()
    client.cache.set("stale", 1, 10)
    assert client.cache.size == 2

    clock.advance(2 * 24 * 3600)
    await client.fetch_procedure_summaries()
    assert client.cache.size == 1


@pytest.mark.asyncio
async def test_procedure_detail(make_client) -> None:
    client, upstream = make_client(ok(PROCEDURE_PAYLOAD))

    result = await client.fetch_procedure_by_id(1246)

    detail = result.unwrap()
    assert detail.id == 1246
    assert [step.id for step in detail.steps] == [7, 8]
    assert upstream.requests[0].url.path == "/Procedures/1246"


@pytest.mark.asyncio
@pytest.mark.parametrize("responder", [
    ok({}),
    lambda request: httpx.Response(200, content=b""),
])
async def test_empty_procedure_is_not_found(make_client, responder) -> None:
    client, _ = make_client(responder)

    result = await client.fetch_procedure_by_id(7)

    err = result.unwrap_err()
    assert err.code is ErrorCode.NOT_FOUND
    assert err.message == "Failed to get data for procedure 7"
    assert not client.cache.has("procedure_7")


@pytest.mark.asyncio
async def test_invalid_procedure_id_fails_fast(make_client) -> None:
    client, upstream = make_client(ok(PROCEDURE_PAYLOAD))

    result = await client.fetch_procedure_by_id(0)

    assert result.unwrap_err().code is ErrorCode.INVALID_PARAMS
    assert result.unwrap_err().message == "Procedure ID is required"
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_step_is_merged_with_identifiers(make_client) -> None:
    client, upstream = make_client(ok({"data": {"name": "Pay fee"}}))

    step = (await client.fetch_step(1246, 9)).unwrap()

    assert (step.id, step.name, step.procedure_id) == (9, "Pay fee", 1246)
    assert upstream.requests[0].url.path == "/Procedures/1246/Steps/9"
    assert client.cache.has("procedure_1246_step_9")


@pytest.mark.asyncio
async def test_full_step_payload(make_client) -> None:
    client, _ = make_client(ok({"data": STEP_PAYLOAD}))
    step = (await client.fetch_step(1246, 7)).unwrap()
    assert step.entity_name == "BRELA"
    assert step.online_url == "https://ors.brela.go.tz"
    assert len(step.costs) == 3


@pytest.mark.asyncio
async def test_step_with_unparseable_nested_field_is_kept(make_client) -> None:
    payload = {"data": {"name": "Submit forms", "requirements": [{"name": "Passport copy", "nbOriginal": "one"}]}}
    client, _ = make_client(ok(payload))

    step = (await client.fetch_step(1246, 9)).unwrap()

    assert step.name == "Submit forms"
    assert [(r.name, r.nb_original) for r in step.requirements] == [("Passport copy", None)]


@pytest.mark.asyncio
async def test_procedure_with_unparseable_step_field_is_kept(make_client) -> None:
    payload = {"name": "Import permit", "isOnline": "sometimes", "data": {"blocks": [
        {"steps": [{"id": 1, "name": "Apply", "costs": [{"value": "free", "unit": "TZS"}]}]},
    ]}}
    client, _ = make_client(ok(payload))

    detail = (await client.fetch_procedure_by_id(77)).unwrap()

    assert (detail.id, detail.name, detail.is_online) == (77, "Import permit", False)
    assert [s.name for s in detail.steps] == ["Apply"]
    assert detail.steps[0].costs[0].value is None
    assert detail.steps[0].costs[0].unit == "TZS"


@pytest.mark.asyncio
async def test_step_without_data_is_not_found(make_client) -> None:
    client, _ = make_client(ok({"message": "nothing here"}))
    err = (await client.fetch_step(1246, 7)).unwrap_err()
    assert err.code is ErrorCode.NOT_FOUND
    assert err.message == "Failed to get step 7 for procedure 1246"


@pytest.mark.asyncio
async def test_invalid_step_id_fails_fast(make_client) -> None:
    client, upstream = make_client(ok({}))
    err = (await client.fetch_step(1, 0)).unwrap_err()
    assert err.message == "Step ID is required"
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_search_posts_keyword_as_json_string(make_client) -> None:
    client, upstream = make_client(ok([{"id": 11, "name": "Company registration"}]))

    result = await client.search_by_keyword(" Company Registration ")

    assert [p.id for p in result.unwrap()] == [11]
    request = upstream.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/Objectives/Search"
    assert orjson.loads(request.content) == "Company Registration"
    assert request.headers["Content-Type"] == "application/json"
    assert client.cache.has("search_objectives_company%20registration")


@pytest.mark.asyncio
async def test_search_with_non_list_response_is_empty(make_client) -> None:
    client, _ = make_client(ok({"unexpected": True}))
    assert (await client.search_by_keyword("visa")).unwrap() == []


@pytest.mark.asyncio
async def test_search_requires_keyword(make_client) -> None:
    client, upstream = make_client(ok([]))
    err = (await client.search_by_keyword("   ")).unwrap_err()
    assert err.message == "Search keyword is required"
    assert upstream.requests == []


# ═════════════════════════════════════════════════════════════════════════════
# Failures and retry
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_not_found_is_not_retried(make_client, sleeps) -> None:
    client, upstream = make_client(lambda request: httpx.Response(404))

    err = (await client.fetch_procedure_by_id(99)).unwrap_err()

    assert err.code is ErrorCode.NOT_FOUND
    assert err.message == "API returned HTTP 404 for /Procedures/99"
    assert len(upstream.requests) == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_server_error_is_retried_then_succeeds(make_client, sleeps) -> None:
    statuses = iter([503, 502])

    def flaky(request: httpx.Request) -> httpx.Response:
        status = next(statuses, 200)
        return httpx.Response(status, json=OBJECTIVES if status == 200 else None)

    client, upstream = make_client(flaky)

    result = await client.fetch_procedure_summaries()

    assert result.is_ok()
    assert len(upstream.requests) == 3
    assert sleeps == [0.5, 0.5]


@pytest.mark.asyncio
async def test_exhausted_retries_return_error_and_skip_cache(make_client, sleeps) -> None:
    client, upstream = make_client(lambda request: httpx.Response(500))

    err = (await client.fetch_procedure_summaries()).unwrap_err()

    assert err.code is ErrorCode.EXTERNAL_SERVICE_ERROR
    assert len(upstream.requests) == 3
    assert len(sleeps) == 2
    assert not client.cache.has("procedures_list")


@pytest.mark.asyncio
async def test_timeout_is_classified_and_retried(make_client) -> None:
    def timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client, upstream = make_client(timeout)

    err = (await client.fetch_step(1, 2)).unwrap_err()

    assert err.code is ErrorCode.TIMEOUT
    assert len(upstream.requests) == 3


@pytest.mark.asyncio
async def test_malformed_json_is_a_parse_error(make_client) -> None:
    client, upstream = make_client(lambda request: httpx.Response(200, content=b"<html>"))

    err = (await client.fetch_procedure_summaries()).unwrap_err()

    assert err.code is ErrorCode.PARSE_ERROR
    assert len(upstream.requests) == 1


@pytest.mark.asyncio
async def test_injected_http_client_is_not_closed(settings, silent_logger) -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(ok([])))
    async with ERegulationsClient(settings=settings, http=http, logger=silent_logger):
        pass
    assert not http.is_closed
    await http.aclose()
