import asyncio
from typing import Any, Dict, List, Optional

import pytest

from species_store import PROFILES_TABLE, SPECIES_TABLE, AuthError, Identity, StoreError

AUTHOR_ID = "6f1c2b9e-author"
OTHER_ID = "0a7d44c1-other"


def _matches(row: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    return all(row.get(k) == v for k, v in filters.items())


class FakeSpeciesStore:
    """In-memory SpeciesStore that behaves like a `.single()` PostgREST lookup."""

    def __init__(self, species: List[dict], profiles: List[dict], user_id: Optional[str] = AUTHOR_ID):
        self.tables: Dict[str, List[dict]] = {
            SPECIES_TABLE: [dict(r) for r in species],
            PROFILES_TABLE: [dict(r) for r in profiles],
        }
        self.user_id = user_id
        self.lookups: List[tuple] = []
        self.updates: List[tuple] = []
        self.update_error: Optional[str] = None

    async def lookup(self, table, filters):
        self.lookups.append((table, dict(filters)))
        rows = [r for r in self.tables.get(table, []) if _matches(r, filters)]
        if len(rows) != 1:
            raise StoreError("JSON object requested, multiple (or no) rows returned", code="PGRST116")
        return dict(rows[0])

    async def update(self, table, values, filters):
        self.updates.append((table, dict(values), dict(filters)))
        if self.update_error:
            raise StoreError(self.update_error)
        for r in self.tables.get(table, []):
            if _matches(r, filters):
                r.update(values)

    async def resolve_current_identity(self):
        if self.user_id is None:
            raise AuthError("Auth session missing!")
        return Identity(id=self.user_id)

    async def list_species(self, limit):
        rows = sorted(self.tables[SPECIES_TABLE], key=lambda r: r["scientific_name"])
        return [dict(r) for r in rows[:limit]]

    def row(self, scientific_name: str) -> dict:
        return next(r for r in self.tables[SPECIES_TABLE] if r["scientific_name"] == scientific_name)


class GatedSpeciesStore(FakeSpeciesStore):
    """Species lookups park until the test releases them, one gate per call."""

    def __init__(self, *args, responses: List[dict], **kwargs):
        super().__init__(*args, **kwargs)
        self.gates = [(asyncio.Event(), dict(r)) for r in responses]
        self.calls = 0

    async def lookup(self, table, filters):
        if table != SPECIES_TABLE:
            return await super().lookup(table, filters)
        gate, row = self.gates[self.calls]
        self.calls += 1
        await gate.wait()
        return row


@pytest.fixture
def panda_row() -> dict:
    return {
        "id": 7,
        "scientific_name": "Ailuropoda melanoleuca",
        "common_name": "Giant panda",
        "description": "A bear native to south central China, recognised by its black and white coat.",
        "kingdom": "Animalia",
        "total_population": 1864,
        "image": "https://example.org/panda.jpg",
        "author": AUTHOR_ID,
    }


@pytest.fixture
def author_row() -> dict:
    return {"id": AUTHOR_ID, "display_name": "Ada Lovelace", "email": "ada@example.org"}


@pytest.fixture
def store(panda_row, author_row) -> FakeSpeciesStore:
    return FakeSpeciesStore([panda_row], [author_row])


@pytest.fixture
def notes() -> list:
    return []
