"""Where the viewer and the editor get their map data from.

Both sources raise DataUnavailable for anything that prevents a usable
answer: transport errors, missing rows, or responses of the wrong shape.
"""
import asyncio
import logging
from typing import Callable, Protocol

import requests
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import DataUnavailable
from ..models.payloads import MapBundle, MapMeta
from . import store

logger = logging.getLogger(__name__)


class MapDataSource(Protocol):
    async def fetch_map(self, map_id: int) -> MapBundle: ...

    async def fetch_map_meta(self, map_id: int) -> MapMeta: ...


class StoreMapSource:
    """Reads straight from the SQLAlchemy store, in-process."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _read(self, query, map_id: int) -> dict:
        try:
            with self.session_factory() as s:
                data = query(s, map_id)
        except SQLAlchemyError as e:
            raise DataUnavailable(f"store read for map {map_id} failed: {e}") from e
        if data is None:
            raise DataUnavailable(f"map {map_id} not found")
        return data

    async def fetch_map(self, map_id: int) -> MapBundle:
        data = await asyncio.to_thread(self._read, store.map_bundle, map_id)
        return _validate(MapBundle, data)

    async def fetch_map_meta(self, map_id: int) -> MapMeta:
        data = await asyncio.to_thread(self._read, store.map_meta, map_id)
        return _validate(MapMeta, data)


class HttpMapSource:
    """Fetches from the REST API with requests, off the event loop."""

    def __init__(self, base_url: str, session: requests.Session | None = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, path: str) -> dict:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
            return r.json()
        except requests.RequestException as e:
            raise DataUnavailable(f"GET {url} failed: {e}") from e
        except ValueError as e:
            raise DataUnavailable(f"GET {url} returned invalid JSON") from e

    async def fetch_map(self, map_id: int) -> MapBundle:
        data = await asyncio.to_thread(self._get, f"/maps/{map_id}")
        return _validate(MapBundle, data)

    async def fetch_map_meta(self, map_id: int) -> MapMeta:
        data = await asyncio.to_thread(self._get, f"/maps/{map_id}/meta")
        return _validate(MapMeta, data)


def _validate(model, data):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("Malformed %s payload: %s", model.__name__, e)
        raise DataUnavailable(f"malformed {model.__name__}") from e
