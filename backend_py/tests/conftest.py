import asyncio
import copy

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interactive_maps.core.errors import DataUnavailable
from interactive_maps.models.db import init_db
from interactive_maps.models.payloads import MapBundle, MapMeta

HARBOUR = {
    "id": 1,
    "title": "Harbour <District>",
    "description": "",
    "image_url": "https://example.org/harbour.png",
    "image_width": 2000,
    "image_height": 1000,
    "locations": [
        {
            "id": 11,
            "map_id": 1,
            "title": "Lighthouse & Pier",
            "content": "<p>Built <strong>1872</strong></p>",
            "type": "place",
            "coordinates": {"x": 200, "y": 100},
            "color": None,
            "images": [{"url": "https://example.org/lh.jpg", "alt": ""}],
        },
        {
            "id": 12,
            "map_id": 1,
            "title": "Fish market",
            "content": "<p>Mornings only</p>",
            "type": "area",
            "coordinates": {"points": [[1000, 100], [1400, 100], [1400, 500], [1000, 500]]},
            "color": "#00aa00",
            "images": [],
        },
    ],
}

OLD_TOWN = {
    "id": 2,
    "title": "Old town",
    "image_url": "https://example.org/old-town.png",
    "image_width": 800,
    "image_height": 600,
    "locations": [
        {"id": 21, "map_id": 2, "title": "Church", "type": "place",
         "coordinates": {"x": 400, "y": 300}},
    ],
}


class FakeSource:
    """In-memory map source whose fetches can be held open."""

    def __init__(self, bundles):
        self.bundles = {b["id"]: copy.deepcopy(b) for b in bundles}
        self.gates = {}
        self.calls = []

    def hold(self, map_id):
        gate = asyncio.Event()
        self.gates[map_id] = gate
        return gate

    async def _wait(self, map_id):
        self.calls.append(map_id)
        gate = self.gates.pop(map_id, None)
        if gate is not None:
            await gate.wait()
        if map_id not in self.bundles:
            raise DataUnavailable(f"map {map_id} not found")

    async def fetch_map(self, map_id):
        await self._wait(map_id)
        return MapBundle.model_validate(self.bundles[map_id])

    async def fetch_map_meta(self, map_id):
        await self._wait(map_id)
        b = self.bundles[map_id]
        return MapMeta(image_url=b["image_url"], width=b["image_width"], height=b["image_height"])


@pytest.fixture
def source():
    return FakeSource([HARBOUR, OLD_TOWN])


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)
