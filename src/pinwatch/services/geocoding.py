# src/pinwatch/services/geocoding.py
"""Address resolution with street-level precision filtering."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from pinwatch.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_OK = 200
MIN_ADDRESS_COMPONENTS = 3

# Component types that pin a result below city level.
STREET_LEVEL_TYPES = frozenset(
    {"street_number", "route", "premise", "point_of_interest", "establishment"}
)

COUNTRY_NAMES = {"US": ("United States", "USA")}

# "Springfield, IL", "Springfield, IL 62701" or "Springfield, IL 62701, USA"
_CITY_STATE_ONLY = re.compile(
    r"^[^,]+,\s*[A-Z]{2}(\s+\d{5}(-\d{4})?)?(,\s*(USA|United States))?$"
)


@dataclass(frozen=True)
class GeocodeResult:
    lat: float
    lng: float
    formatted_address: str


class Geocoder(Protocol):
    async def resolve(self, address: str) -> GeocodeResult | None: ...


def _country_code(result: Mapping[str, Any]) -> str | None:
    for component in result.get("address_components", []):
        if "country" in component.get("types", []):
            return component.get("short_name")
    return None


def is_precise_result(result: Mapping[str, Any], country: str = "US") -> bool:
    """Return True if a Google geocoding result identifies a street-level place.

    Results outside ``country``, bare country or "City, ST" matches, and
    results without a street, premise or establishment component are
    rejected.
    """
    formatted = (result.get("formatted_address") or "").strip()
    components = result.get("address_components") or []

    if _country_code(result) != country:
        return False
    if not formatted or formatted in COUNTRY_NAMES.get(country, ()):
        return False
    if len(components) < MIN_ADDRESS_COMPONENTS:
        return False
    if _CITY_STATE_ONLY.match(formatted):
        return False

    types = {kind for component in components for kind in component.get("types", [])}
    return bool(types & STREET_LEVEL_TYPES)


class GoogleGeocoder:
    """Geocoder backed by the Google Geocoding API.

    Any failure (missing key, transport error, imprecise match) resolves to
    None, which callers surface as "address not found".
    """

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        country: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.url = url or settings.geocoding_url
        self.country = country or settings.geocoding_country
        self.timeout_seconds = timeout_seconds or settings.geocoding_timeout_seconds
        self._transport = transport

    async def resolve(self, address: str) -> GeocodeResult | None:
        if not self.api_key:
            logger.error("Geocoding API key not configured")
            return None

        params = {
            "address": address,
            "key": self.api_key,
            "components": f"country:{self.country}",
            "region": self.country.lower(),
        }
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.get(self.url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Geocoding request failed: %s", exc)
            return None

        if response.status_code != HTTP_OK:
            logger.warning("Geocoding provider returned HTTP %s", response.status_code)
            return None

        try:
            results = response.json().get("results") or []
        except ValueError:
            logger.warning("Geocoding provider returned an unreadable body")
            return None
        if not results:
            return None

        best = results[0]
        if not is_precise_result(best, self.country):
            logger.info("Rejecting imprecise geocode for %r", best.get("formatted_address"))
            return None

        location = best.get("geometry", {}).get("location", {})
        try:
            return GeocodeResult(
                lat=float(location["lat"]),
                lng=float(location["lng"]),
                formatted_address=best["formatted_address"],
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Geocoding result missing coordinates")
            return None


class _GeocoderSingleton:
    """Singleton wrapper for GoogleGeocoder."""

    _instance: GoogleGeocoder | None = None

    @classmethod
    def get_instance(cls) -> GoogleGeocoder:
        if cls._instance is None:
            cls._instance = GoogleGeocoder()
        return cls._instance


def get_geocoder() -> Geocoder:
    """Return the configured geocoder."""
    return _GeocoderSingleton.get_instance()
