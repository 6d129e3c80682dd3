# json_store.py - JSON 파일 레벨 저장소

import asyncio
import json
import logging
import os
import time
from typing import Dict, Iterable, List, Optional, Tuple

from errors import PersistenceError
from models import UserLevelRecord

logger = logging.getLogger(__name__)


def _check_document(data) -> Dict[str, Dict[str, dict]]:
    """{guild_id: {user_id: record}} 형태인지 확인 (아니면 ValueError)"""
    if not isinstance(data, dict):
        raise ValueError("최상위 값이 객체가 아닙니다")
    for guild_id, guild in data.items():
        if not isinstance(guild, dict):
            raise ValueError(f"길드 {guild_id}의 값이 객체가 아닙니다")
        for user_id, row in guild.items():
            try:
                record = UserLevelRecord.from_row(row)
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"잘못된 레코드 ({guild_id}/{user_id}): {e!r}") from e
            if record.guild_id != guild_id or record.user_id != user_id:
                raise ValueError(f"레코드 키가 맞지 않습니다 ({guild_id}/{user_id})")
    return data


class JsonLevelsStore:
    """
    {guild_id: {user_id: record}} 형태의 JSON 파일 저장소.
    메모리에 전체를 들고 있고 변경될 때마다 파일 전체를 다시 쓴다.
    LevelsDB와 같은 인터페이스.
    """

    def __init__(self, path: str):
        self.path = path
        self._data: Optional[Dict[str, Dict[str, dict]]] = None
        # 변경 + 파일 쓰기는 한 번에 하나씩
        self._write_lock = asyncio.Lock()

    def _load_raw(self) -> Dict[str, Dict[str, dict]]:
        """파일에서 로드 (없으면 빈 dict)"""
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return _check_document(data)

    def _save_raw(self, data: Dict[str, Dict[str, dict]]):
        """임시 파일에 쓴 뒤 교체"""
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    async def open(self):
        if self._data is not None:
            return
        try:
            self._data = await asyncio.to_thread(self._load_raw)
        except (OSError, ValueError) as e:
            logger.error("[JsonLevelsStore] 로드 오류 (%s): %s", self.path, e)
            raise PersistenceError(f"레벨 파일을 읽을 수 없습니다: {self.path}") from e
        logger.info("[JsonLevelsStore] JSON store loaded: %s", self.path)

    async def close(self):
        self._data = None

    def _require_open(self) -> Dict[str, Dict[str, dict]]:
        if self._data is None:
            raise PersistenceError("저장소가 열려 있지 않습니다. open()을 먼저 호출하세요.")
        return self._data

    def _guild(self, guild_id: str) -> Dict[str, dict]:
        return self._require_open().get(guild_id, {})

    def _put(self, guild_id: str, user_id: str, row: Optional[dict]):
        """row가 None이면 삭제 (비게 된 길드도 제거)"""
        data = self._require_open()
        if row is not None:
            data.setdefault(guild_id, {})[user_id] = row
            return
        guild = data.get(guild_id)
        if guild is not None:
            guild.pop(user_id, None)
            if not guild:
                del data[guild_id]

    async def _apply(self, changes: Dict[Tuple[str, str], Optional[dict]]):
        """
        changes: {(guild_id, user_id): row 또는 None(삭제)}
        _write_lock을 잡은 상태에서 호출. 파일 쓰기가 실패하면 이번에 바꾼 항목만 되돌린다.
        """
        previous = {key: self._guild(key[0]).get(key[1]) for key in changes}
        for (guild_id, user_id), row in changes.items():
            self._put(guild_id, user_id, row)

        snapshot = json.loads(json.dumps(self._data))
        try:
            await asyncio.to_thread(self._save_raw, snapshot)
        except (OSError, TypeError) as e:
            for (guild_id, user_id), row in previous.items():
                self._put(guild_id, user_id, row)
            logger.error("[JsonLevelsStore] 저장 오류 (%s): %s", self.path, e)
            raise PersistenceError(f"레벨 파일에 저장할 수 없습니다: {self.path}") from e

    async def find(self, user_id: str, guild_id: str) -> Optional[UserLevelRecord]:
        row = self._guild(guild_id).get(user_id)
        if row is None:
            return None
        return UserLevelRecord.from_row(row)

    async def create(self, user_id: str, guild_id: str, now: Optional[int] = None) -> UserLevelRecord:
        async with self._write_lock:
            existing = await self.find(user_id, guild_id)
            if existing is not None:
                return existing
            now = int(now if now is not None else time.time())
            record = UserLevelRecord(user_id, guild_id, created_at=now, updated_at=now)
            await self._apply({(guild_id, user_id): record.to_dict()})
        return record

    async def get_or_create(self, user_id: str, guild_id: str, now: Optional[int] = None) -> UserLevelRecord:
        record = await self.find(user_id, guild_id)
        if record is None:
            record = await self.create(user_id, guild_id, now)
        return record

    async def save(self, record: UserLevelRecord):
        async with self._write_lock:
            if record.user_id not in self._guild(record.guild_id):
                return
            await self._apply({(record.guild_id, record.user_id): record.to_dict()})

    async def query_by_guild(self, guild_id: str, limit: int = 10, offset: int = 0) -> List[UserLevelRecord]:
        if limit <= 0:
            return []
        offset = max(offset, 0)
        # sorted()는 안정 정렬이므로 동점은 저장(삽입) 순서 유지
        rows = sorted(
            self._guild(guild_id).values(),
            key=lambda r: (-r['xp'], -r['level'])
        )
        return [UserLevelRecord.from_row(r) for r in rows[offset:offset + limit]]

    async def count_where(self, guild_id: str, xp_greater_than: int) -> int:
        return sum(1 for r in self._guild(guild_id).values() if r['xp'] > xp_greater_than)

    async def count_guild(self, guild_id: str) -> int:
        return len(self._guild(guild_id))

    async def delete(self, user_id: str, guild_id: str) -> bool:
        async with self._write_lock:
            if user_id not in self._guild(guild_id):
                return False
            await self._apply({(guild_id, user_id): None})
        return True

    async def bulk_insert(self, records: Iterable[UserLevelRecord]) -> int:
        changes = {}
        count = 0
        for record in records:
            changes[(record.guild_id, record.user_id)] = record.to_dict()
            count += 1
        async with self._write_lock:
            self._require_open()
            await self._apply(changes)
        return count

    async def all_records(self) -> List[UserLevelRecord]:
        return [
            UserLevelRecord.from_row(row)
            for guild in self._require_open().values()
            for row in guild.values()
        ]
