# tests/support.py
"""Test doubles and record builders shared across test modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from pinwatch.services.errors import BlobNotFoundError
from pinwatch.services.geocoding import GeocodeResult
from pinwatch.services.merge import ReportRecord
from pinwatch.services.moderation import ModerationVerdict

FIXED_NOW = datetime(2024, 10, 25, 15, 0, 0, tzinfo=UTC)

MAIN_ST = GeocodeResult(
    lat=40.7128,
    lng=-74.006,
    formatted_address="123 Main St, Springfield, IL 62701, USA",
)
MAIN_ST_KEY = "123_main_st_springfield_il_62701_usa"
OAK_AVE = GeocodeResult(
    lat=40.7,
    lng=-74.01,
    formatted_address="9 Oak Ave, Springfield, IL 62702, USA",
)
OAK_AVE_KEY = "9_oak_ave_springfield_il_62702_usa"


class MutableClock:
    """Callable clock tests can move forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeModerator:
    def __init__(self, flagged_words: tuple[str, ...] = ("abusive",)) -> None:
        self.flagged_words = flagged_words
        self.calls: list[str] = []

    async def classify(self, text: str) -> ModerationVerdict:
        self.calls.append(text)
        return ModerationVerdict(flagged=any(word in text.lower() for word in self.flagged_words))


class FakeGeocoder:
    """Resolves addresses from a fixed table; unknown addresses return None."""

    def __init__(self, table: dict[str, GeocodeResult] | None = None) -> None:
        self.table = table or {}
        self.calls: list[str] = []

    async def resolve(self, address: str) -> GeocodeResult | None:
        self.calls.append(address)
        return self.table.get(" ".join(address.lower().split()))


@dataclass
class InMemoryBlobStore:
    objects: dict[str, bytes] = field(default_factory=dict)
    fail_copy: bool = False
    fail_delete: set[str] = field(default_factory=set)

    def copy(self, source: str, destination: str) -> None:
        if self.fail_copy:
            raise OSError("copy failed")
        if source not in self.objects:
            raise BlobNotFoundError(source)
        self.objects[destination] = self.objects[source]

    def exists(self, path: str) -> bool:
        return path in self.objects

    def delete(self, path: str) -> None:
        if path in self.fail_delete:
            raise OSError("delete failed")
        if path not in self.objects:
            raise BlobNotFoundError(path)
        del self.objects[path]

    def public_url(self, path: str) -> str:
        return f"https://media.example.test/{path}"


def make_record(
    key: str = MAIN_ST_KEY,
    *,
    added_at: datetime = FIXED_NOW,
    reported_count: int = 1,
    address: str | None = None,
    **overrides: object,
) -> ReportRecord:
    values: dict[str, object] = {
        "key": key,
        "address": address or key.replace("_", " "),
        "additional_info": "",
        "lat": 40.0,
        "lng": -74.0,
        "added_at": added_at,
        "reported_count": reported_count,
    }
    values.update(overrides)
    return ReportRecord(**values)  # type: ignore[arg-type]
