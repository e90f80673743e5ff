# mypy: ignore-errors
"""Tests for geocoding precision rules and the Google client."""

import httpx
import pytest

from pinwatch.services.geocoding import GoogleGeocoder, is_precise_result


def _component(name: str, short: str, *types: str) -> dict:
    return {"long_name": name, "short_name": short, "types": list(types)}


STREET_RESULT = {
    "formatted_address": "123 Main St, Springfield, IL 62701, USA",
    "address_components": [
        _component("123", "123", "street_number"),
        _component("Main Street", "Main St", "route"),
        _component("Springfield", "Springfield", "locality", "political"),
        _component("Illinois", "IL", "administrative_area_level_1", "political"),
        _component("United States", "US", "country", "political"),
    ],
    "geometry": {"location": {"lat": 39.7817, "lng": -89.6501}},
}

CITY_RESULT = {
    "formatted_address": "Springfield, IL, USA",
    "address_components": [
        _component("Springfield", "Springfield", "locality", "political"),
        _component("Illinois", "IL", "administrative_area_level_1", "political"),
        _component("United States", "US", "country", "political"),
    ],
}


def test_street_result_is_precise() -> None:
    """A result with a street number and route is accepted."""
    assert is_precise_result(STREET_RESULT) is True


def test_city_level_result_is_rejected() -> None:
    """A bare city and state match is too vague."""
    assert is_precise_result(CITY_RESULT) is False


def test_country_only_result_is_rejected() -> None:
    """A result naming just the country is rejected."""
    result = {
        "formatted_address": "United States",
        "address_components": [_component("United States", "US", "country", "political")],
    }
    assert is_precise_result(result) is False


def test_foreign_result_is_rejected() -> None:
    """Results outside the configured country are rejected."""
    components = [dict(c) for c in STREET_RESULT["address_components"][:-1]]
    components.append(_component("Canada", "CA", "country", "political"))
    result = {**STREET_RESULT, "address_components": components}
    assert is_precise_result(result) is False


def test_result_without_street_components_is_rejected() -> None:
    """Enough components but none below city level is rejected."""
    result = {
        "formatted_address": "Sangamon County, Springfield Area, IL, USA",
        "address_components": [
            _component("Sangamon County", "Sangamon County", "administrative_area_level_2"),
            _component("Springfield", "Springfield", "locality"),
            _component("Illinois", "IL", "administrative_area_level_1"),
            _component("United States", "US", "country"),
        ],
    }
    assert is_precise_result(result) is False


def _geocoder(handler, **overrides) -> GoogleGeocoder:
    values = {
        "api_key": "maps-key",
        "url": "https://maps.example.test/geocode/json",
        "country": "US",
        "timeout_seconds": 2.0,
        "transport": httpx.MockTransport(handler),
    }
    values.update(overrides)
    return GoogleGeocoder(**values)


@pytest.mark.asyncio
async def test_resolve_returns_first_precise_result() -> None:
    """The first result is returned with its coordinates."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"status": "OK", "results": [STREET_RESULT]})

    result = await _geocoder(handler).resolve("123 main st springfield")

    assert result.formatted_address == "123 Main St, Springfield, IL 62701, USA"
    assert result.lat == pytest.approx(39.7817)
    assert result.lng == pytest.approx(-89.6501)
    assert seen["params"] == {
        "address": "123 main st springfield",
        "key": "maps-key",
        "components": "country:US",
        "region": "us",
    }


@pytest.mark.asyncio
async def test_resolve_rejects_imprecise_first_result() -> None:
    """A vague best match resolves to nothing."""
    handler = lambda request: httpx.Response(200, json={"results": [CITY_RESULT, STREET_RESULT]})  # noqa: E731
    assert await _geocoder(handler).resolve("springfield") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}),
        httpx.Response(403, json={"error_message": "denied"}),
        httpx.Response(200, text="<html>"),
    ],
)
async def test_resolve_failures_return_none(response) -> None:
    """Empty, denied and unreadable replies all resolve to nothing."""
    assert await _geocoder(lambda request: response).resolve("123 main st") is None


@pytest.mark.asyncio
async def test_resolve_without_key_skips_request() -> None:
    """No API key means no request and no result."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"results": [STREET_RESULT]})

    assert await _geocoder(handler, api_key="").resolve("123 main st") is None
    assert calls == []


@pytest.mark.asyncio
async def test_resolve_transport_error_returns_none() -> None:
    """Network failures resolve to nothing."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    assert await _geocoder(handler).resolve("123 main st") is None
