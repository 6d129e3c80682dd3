# database.py - 데이터베이스 관리 (SQLite)

import logging
import os
import time
from typing import Iterable, List, Optional

import aiosqlite

from errors import PersistenceError
from models import UserLevelRecord

logger = logging.getLogger(__name__)


class LevelsDB:
    """
    user_levels 테이블 저장소.
    open()으로 연결을 열고 close()로 닫는다. 연결 하나를 계속 사용하므로
    ":memory:" 경로도 테스트에 그대로 쓸 수 있다.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None

    async def open(self):
        """연결 열기 및 테이블 생성"""
        if self._db is not None:
            return
        try:
            if self.db_path != ":memory:":
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            self._db = await aiosqlite.connect(self.db_path)
            self._db.row_factory = aiosqlite.Row
            if self.db_path != ":memory:":
                await self._db.execute("PRAGMA journal_mode=WAL")

            await self._db.execute("""
                CREATE TABLE IF NOT EXISTS user_levels (
                    user_id TEXT NOT NULL,
                    guild_id TEXT NOT NULL,
                    xp INTEGER NOT NULL DEFAULT 0,
                    level INTEGER NOT NULL DEFAULT 0,
                    total_messages INTEGER NOT NULL DEFAULT 0,
                    last_xp_time INTEGER NOT NULL DEFAULT 0,
                    created_at INTEGER,
                    updated_at INTEGER,
                    PRIMARY KEY (user_id, guild_id)
                )
            """)
            await self._db.execute(
                "CREATE INDEX IF NOT EXISTS idx_levels_guild ON user_levels(guild_id)"
            )
            await self._db.execute(
                "CREATE INDEX IF NOT EXISTS idx_levels_xp ON user_levels(guild_id, xp DESC)"
            )
            await self._db.execute(
                "CREATE INDEX IF NOT EXISTS idx_levels_level ON user_levels(guild_id, level DESC)"
            )
            await self._db.commit()
        except (aiosqlite.Error, OSError) as e:
            logger.error("[LevelsDB] 데이터베이스 초기화 실패 (%s): %s", self.db_path, e)
            raise PersistenceError(f"데이터베이스를 열 수 없습니다: {self.db_path}") from e
        logger.info("[LevelsDB] SQLite database initialized: %s", self.db_path)

    async def close(self):
        """연결 닫기"""
        if self._db is None:
            return
        await self._db.close()
        self._db = None
        logger.info("[LevelsDB] Database connection closed")

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise PersistenceError("데이터베이스가 열려 있지 않습니다. open()을 먼저 호출하세요.")
        return self._db

    async def _fetchone(self, query: str, params: tuple):
        try:
            async with self._conn().execute(query, params) as cursor:
                return await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("[LevelsDB] 조회 실패: %s", e)
            raise PersistenceError("레벨 데이터 조회 실패") from e

    async def _fetchall(self, query: str, params: tuple):
        try:
            async with self._conn().execute(query, params) as cursor:
                return await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error("[LevelsDB] 조회 실패: %s", e)
            raise PersistenceError("레벨 데이터 조회 실패") from e

    async def _write(self, query: str, params: tuple) -> int:
        """쓰기 실행 후 커밋, 영향받은 행 수 반환"""
        db = self._conn()
        try:
            cursor = await db.execute(query, params)
            await db.commit()
            return cursor.rowcount
        except aiosqlite.Error as e:
            logger.error("[LevelsDB] 저장 실패: %s", e)
            raise PersistenceError("레벨 데이터 저장 실패") from e

    async def find(self, user_id: str, guild_id: str) -> Optional[UserLevelRecord]:
        """사용자 레벨 데이터 조회"""
        row = await self._fetchone(
            "SELECT * FROM user_levels WHERE user_id = ? AND guild_id = ?",
            (user_id, guild_id)
        )
        if row:
            return UserLevelRecord.from_row(dict(row))
        return None

    async def create(self, user_id: str, guild_id: str, now: Optional[int] = None) -> UserLevelRecord:
        """새 레벨 데이터 생성 (xp=0, level=0)"""
        now = int(now if now is not None else time.time())
        await self._write(
            """INSERT INTO user_levels
               (user_id, guild_id, xp, level, total_messages, last_xp_time, created_at, updated_at)
               VALUES (?, ?, 0, 0, 0, 0, ?, ?)
               ON CONFLICT(user_id, guild_id) DO NOTHING""",
            (user_id, guild_id, now, now)
        )
        return await self.find(user_id, guild_id)

    async def get_or_create(self, user_id: str, guild_id: str, now: Optional[int] = None) -> UserLevelRecord:
        """조회, 없으면 생성"""
        record = await self.find(user_id, guild_id)
        if record is None:
            record = await self.create(user_id, guild_id, now)
        return record

    async def save(self, record: UserLevelRecord):
        """레코드의 모든 필드 저장"""
        await self._write(
            """UPDATE user_levels
               SET xp = ?, level = ?, total_messages = ?, last_xp_time = ?, updated_at = ?
               WHERE user_id = ? AND guild_id = ?""",
            (record.xp, record.level, record.total_messages, record.last_xp_time,
             record.updated_at, record.user_id, record.guild_id)
        )

    async def query_by_guild(self, guild_id: str, limit: int = 10, offset: int = 0) -> List[UserLevelRecord]:
        """XP 기준 순위표 (xp DESC, level DESC, 저장 순서)"""
        if limit <= 0:
            return []
        rows = await self._fetchall(
            """SELECT * FROM user_levels
               WHERE guild_id = ?
               ORDER BY xp DESC, level DESC, rowid ASC
               LIMIT ? OFFSET ?""",
            (guild_id, limit, max(offset, 0))
        )
        return [UserLevelRecord.from_row(dict(row)) for row in rows]

    async def count_where(self, guild_id: str, xp_greater_than: int) -> int:
        """해당 서버에서 xp가 주어진 값보다 큰 사용자 수"""
        row = await self._fetchone(
            "SELECT COUNT(*) FROM user_levels WHERE guild_id = ? AND xp > ?",
            (guild_id, xp_greater_than)
        )
        return row[0] if row else 0

    async def count_guild(self, guild_id: str) -> int:
        """서버의 전체 사용자 수"""
        row = await self._fetchone(
            "SELECT COUNT(*) FROM user_levels WHERE guild_id = ?",
            (guild_id,)
        )
        return row[0] if row else 0

    async def delete(self, user_id: str, guild_id: str) -> bool:
        """레벨 데이터 삭제"""
        deleted = await self._write(
            "DELETE FROM user_levels WHERE user_id = ? AND guild_id = ?",
            (user_id, guild_id)
        )
        return deleted > 0

    async def bulk_insert(self, records: Iterable[UserLevelRecord]) -> int:
        """여러 레코드를 한 트랜잭션으로 삽입 (이미 있으면 덮어씀)"""
        rows = [
            (r.user_id, r.guild_id, r.xp, r.level, r.total_messages,
             r.last_xp_time, r.created_at, r.updated_at)
            for r in records
        ]
        db = self._conn()
        try:
            await db.executemany(
                """INSERT OR REPLACE INTO user_levels
                   (user_id, guild_id, xp, level, total_messages, last_xp_time, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                rows
            )
            await db.commit()
        except aiosqlite.Error as e:
            await db.rollback()
            logger.error("[LevelsDB] 일괄 삽입 실패: %s", e)
            raise PersistenceError("레벨 데이터 일괄 삽입 실패") from e
        return len(rows)

    async def all_records(self) -> List[UserLevelRecord]:
        """전체 레코드 (저장 순서)"""
        rows = await self._fetchall("SELECT * FROM user_levels ORDER BY rowid", ())
        return [UserLevelRecord.from_row(dict(row)) for row in rows]


def open_levels_store(backend: str, db_path: str, json_path: str):
    """설정값에 맞는 레벨 저장소 생성 (open()은 호출하는 쪽에서)"""
    backend = (backend or "sqlite").lower()
    if backend == "sqlite":
        return LevelsDB(db_path)
    if backend == "json":
        from json_store import JsonLevelsStore
        return JsonLevelsStore(json_path)
    raise ValueError(f"알 수 없는 저장소 종류입니다: {backend} (sqlite 또는 json)")
