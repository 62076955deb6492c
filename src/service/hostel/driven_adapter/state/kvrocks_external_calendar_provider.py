"""
Kvrocks External Calendar Provider

The iCal importer job writes every parsed block as one JSON array under
``EXTERNAL_BLOCKS_KEY``. This adapter only reads and filters that snapshot.

Storage Format:
    Key: ical:blocks
    Type: String (JSON array)
    Entry: {"uid", "check_in", "check_out", "source", "stale",
            "room_id", "bed_numbers", "bed_count"}
"""

from datetime import date
from typing import List, Optional

import orjson
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import TransientStoreError
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client, make_key
from src.service.hostel.app.interface.i_external_calendar_provider import (
    IExternalCalendarProvider,
)
from src.service.hostel.domain.value_object.external_block import ExternalBlock


class KvrocksExternalCalendarProvider(IExternalCalendarProvider):
    def __init__(
        self, *, redis_client: Optional[AsyncRedis] = None, blocks_key: Optional[str] = None
    ) -> None:
        self._redis = redis_client
        self.blocks_key = blocks_key or settings.EXTERNAL_BLOCKS_KEY

    @property
    def client(self) -> AsyncRedis:
        return self._redis if self._redis is not None else kvrocks_client.get_client()

    @Logger.io
    async def list_blocks(self, *, start: date, end: date) -> List[ExternalBlock]:
        try:
            raw = await self.client.get(make_key(self.blocks_key))
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'External calendar unavailable: {e}') from e

        if not raw:
            return []

        try:
            entries = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            Logger.base.error(f'❌ [ICAL] Block snapshot is not valid JSON: {e}')
            return []

        blocks: list[ExternalBlock] = []
        for entry in entries:
            try:
                block = ExternalBlock.from_dict(entry)
            except (KeyError, TypeError, ValueError) as e:
                Logger.base.warning(f'⚠️ [ICAL] Skipping malformed block {entry!r}: {e}')
                continue
            if block.overlaps(start, end):
                blocks.append(block)
        return blocks

    @Logger.io
    async def store_blocks(self, *, blocks: List[ExternalBlock]) -> None:
        """Replace the snapshot (used by the importer and by integration fixtures)"""
        payload = orjson.dumps([block.to_dict() for block in blocks])
        try:
            await self.client.set(make_key(self.blocks_key), payload)
        except (RedisError, OSError) as e:
            raise TransientStoreError(f'External calendar write failed: {e}') from e
        Logger.base.info(f'📅 [ICAL] Stored {len(blocks)} external blocks')
