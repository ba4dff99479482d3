import asyncio
from typing import Optional

import pytest

from vitrina.analysis import BaseLLMProvider, LLMResponse
from vitrina.database import (
    BuyerSessionRepository,
    ListingRepository,
    PropertyViewRepository,
)
from vitrina.models import (
    AIMatchScore,
    BuyerSession,
    ListingRecord,
    PreferenceProfile,
    ViewEvent,
)


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Subset of the postgrest query builder backed by in-memory rows."""

    def __init__(self, store: "FakeSupabase", table: str):
        self.store = store
        self.table = table
        self.filters = []
        self._negate = False
        self._op = "select"
        self._payload = None
        self._order = None
        self._limit = None

    def select(self, *_args):
        self._op = "select"
        return self

    def insert(self, data):
        self._op = "insert"
        self._payload = data
        return self

    def update(self, data):
        self._op = "update"
        self._payload = data
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def _add(self, predicate):
        negate = self._negate
        self._negate = False
        if negate:
            self.filters.append(lambda row: not predicate(row))
        else:
            self.filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._add(lambda row: row.get(column) == value)

    def in_(self, column, values):
        values = list(values)
        return self._add(lambda row: row.get(column) in values)

    def is_(self, column, value):
        assert value == "null"
        return self._add(lambda row: row.get(column) is None)

    def or_(self, expression):
        self.store.or_filters.append(expression)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def execute(self):
        rows = self.store.tables.setdefault(self.table, [])

        if self._op == "insert":
            row = dict(self._payload)
            row.setdefault("id", f"{self.table}-{len(rows) + 1}")
            rows.append(row)
            return FakeResponse([dict(row)])

        matched = [row for row in rows if all(f(row) for f in self.filters)]

        if self._op == "update":
            if self.store.fail_updates:
                self.store.update_attempts += 1
                raise RuntimeError("connection reset")
            for row in matched:
                row.update(self._payload)
            return FakeResponse([dict(row) for row in matched])

        if self._order is not None:
            column, desc = self._order
            matched = sorted(
                matched,
                key=lambda row: (row.get(column) is None, row.get(column) or 0),
                reverse=desc,
            )
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse([dict(row) for row in matched])


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.or_filters: list[str] = []
        self.fail_updates = False
        self.update_attempts = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, rows: list[dict]) -> None:
        self.tables.setdefault(table, []).extend(dict(row) for row in rows)


class FakeLLMProvider(BaseLLMProvider):
    provider_name = "fake"
    model = "fake-model"

    def __init__(self, text: str = "", error: Optional[Exception] = None, delay: float = 0):
        self.text = text
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []

    async def generate_json(self, system_prompt, user_prompt, temperature=0.3, max_tokens=400):
        self.prompts.append(user_prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LLMResponse(text=self.text, model=self.model, provider=self.provider_name)


def make_listing(listing_id: str = "l1", **overrides) -> ListingRecord:
    data = {
        "id": listing_id,
        "price": 300000,
        "bedrooms": 3,
        "bathrooms": 2,
        "city": "Austin",
        "state": "TX",
        "address": "12 Oak St",
        "property_type": "single-family",
        "features": ["Heated Pool", "Garage"],
        "status": "active",
    }
    data.update(overrides)
    return ListingRecord(**data)


def make_profile(**overrides) -> PreferenceProfile:
    return PreferenceProfile(**overrides)


def make_event(
    listing_id: Optional[str] = "l1",
    buyer_session_id: Optional[str] = "s1",
    timestamp: int = 1_000,
    view_duration: float = 60,
    images_viewed=(),
    ai_score: Optional[int] = None,
    calculated_at: Optional[int] = None,
    event_id: Optional[str] = None,
    viewer_type: str = "buyer",
) -> ViewEvent:
    ai_match_score = None
    if ai_score is not None:
        ai_match_score = AIMatchScore(score=ai_score, calculated_at=calculated_at or timestamp)
    return ViewEvent(
        id=event_id,
        listing_id=listing_id,
        buyer_session_id=buyer_session_id,
        viewer_type=viewer_type,
        view_duration=view_duration,
        images_viewed=list(images_viewed),
        timestamp=timestamp,
        ai_match_score=ai_match_score,
    )


def make_session(session_id: str = "s1", **preferences) -> BuyerSession:
    return BuyerSession(
        id=session_id,
        buyer_name="Sam Buyer",
        preferences=PreferenceProfile(**preferences),
    )


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def view_repo(supabase):
    return PropertyViewRepository(client=supabase)


@pytest.fixture
def listing_repo(supabase):
    return ListingRepository(client=supabase)


@pytest.fixture
def session_repo(supabase):
    return BuyerSessionRepository(client=supabase)
