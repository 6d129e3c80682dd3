# level_system.py - 레벨 시스템 로직

import asyncio
import contextlib
import logging
import math
import random
import time
from typing import Callable, Dict, List, Optional, Tuple

from config import XP_MIN, XP_MAX, XP_COOLDOWN_SECONDS
from errors import PersistenceError, ValidationError
from models import UserLevelRecord

logger = logging.getLogger(__name__)


def calculate_level(xp: int) -> int:
    """
    XP로부터 레벨 계산 (MEE6 방식)
    level = floor(0.1 * sqrt(xp)) = isqrt(xp) // 10
    """
    if xp <= 0:
        return 0
    return math.isqrt(int(xp)) // 10


def calculate_xp_for_level(level: int) -> int:
    """해당 레벨에 도달하는 데 필요한 총 XP: (level / 0.1)^2 = 100 * level^2"""
    if level <= 0:
        return 0
    return 100 * level * level


def get_xp_progress(xp: int, level: int) -> dict:
    """
    다음 레벨까지의 진행 상황
    Returns: {
        'current': int,       # 현재 레벨 구간에서 쌓은 XP
        'needed': int,        # 현재 레벨 구간 전체 XP
        'percentage': int,    # 0 ~ 100
        'next_level_xp': int  # 다음 레벨 도달 총 XP
    }
    """
    current_level_xp = calculate_xp_for_level(level)
    next_level_xp = calculate_xp_for_level(level + 1)
    xp_into_level = max(xp - current_level_xp, 0)
    xp_needed = next_level_xp - current_level_xp
    percentage = min(max(100 * xp_into_level // xp_needed, 0), 100)

    return {
        'current': xp_into_level,
        'needed': xp_needed,
        'percentage': percentage,
        'next_level_xp': next_level_xp
    }


def get_random_xp(randint: Callable[[int, int], int] = random.randint,
                  min_xp: int = XP_MIN, max_xp: int = XP_MAX) -> int:
    """[min_xp, max_xp] 범위의 정수 XP"""
    return randint(min_xp, max_xp)


def is_on_cooldown(last_xp_time: int, now: int, cooldown: int = XP_COOLDOWN_SECONDS) -> bool:
    """마지막 지급 이후 cooldown 초가 지나지 않았으면 True (정확히 cooldown초면 지급 가능)"""
    return (now - last_xp_time) < cooldown


def _check_id(value, name: str):
    if value is None or not str(value).strip():
        raise ValidationError(f"{name}가 비어 있습니다.")


def _check_ids(user_id, guild_id):
    _check_id(user_id, "user_id")
    _check_id(guild_id, "guild_id")


class LevelingEngine:
    """
    (user_id, guild_id)별 XP / 레벨 관리.
    store는 LevelsDB 또는 JsonLevelsStore (open()은 호출하는 쪽 책임).
    """

    def __init__(self, store, randint: Callable[[int, int], int] = random.randint,
                 cooldown: int = XP_COOLDOWN_SECONDS, min_xp: int = XP_MIN, max_xp: int = XP_MAX,
                 clock: Callable[[], float] = time.time):
        if min_xp < 0 or min_xp > max_xp:
            raise ValueError(f"잘못된 XP 범위입니다: {min_xp} ~ {max_xp}")
        if cooldown < 0:
            raise ValueError(f"쿨다운은 0 이상이어야 합니다: {cooldown}")

        self.store = store
        self.randint = randint
        self.cooldown = cooldown
        self.min_xp = min_xp
        self.max_xp = max_xp
        self.clock = clock
        # (user_id, guild_id) → [lock, 대기 중이거나 잡고 있는 작업 수]
        self._locks: Dict[Tuple[str, str], list] = {}

    @contextlib.asynccontextmanager
    async def _locked(self, user_id: str, guild_id: str):
        """같은 (user_id, guild_id)에 대한 작업 직렬화. 아무도 안 쓰는 lock은 바로 지운다."""
        key = (user_id, guild_id)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def _now(self, now) -> int:
        return int(now if now is not None else self.clock())

    async def record_activity(self, user_id, guild_id, now: Optional[float] = None) -> dict:
        """
        메시지 1개에 대한 XP 지급 시도
        Returns: {
            'granted': bool,      # 쿨다운/저장 실패 시 False
            'xp_gained': int,
            'old_level': int,
            'new_level': int,
            'total_xp': int,
            'leveled_up': bool
        }
        """
        _check_ids(user_id, guild_id)
        user_id, guild_id = str(user_id), str(guild_id)
        now = self._now(now)

        async with self._locked(user_id, guild_id):
            try:
                record = await self.store.get_or_create(user_id, guild_id, now)

                if is_on_cooldown(record.last_xp_time, now, self.cooldown):
                    return self._no_grant(record)

                old_level = record.level
                xp_gained = get_random_xp(self.randint, self.min_xp, self.max_xp)
                new_xp = record.xp + xp_gained
                new_level = calculate_level(new_xp)

                updated = UserLevelRecord(
                    user_id, guild_id,
                    xp=new_xp,
                    level=new_level,
                    total_messages=record.total_messages + 1,
                    last_xp_time=now,
                    created_at=record.created_at,
                    updated_at=now,
                )
                await self.store.save(updated)
            except PersistenceError as e:
                logger.warning("[LevelingEngine] XP 지급 실패 (user=%s, guild=%s): %s", user_id, guild_id, e)
                return {
                    'granted': False,
                    'xp_gained': 0,
                    'old_level': 0,
                    'new_level': 0,
                    'total_xp': 0,
                    'leveled_up': False
                }

        return {
            'granted': True,
            'xp_gained': xp_gained,
            'old_level': old_level,
            'new_level': new_level,
            'total_xp': new_xp,
            'leveled_up': new_level > old_level
        }

    @staticmethod
    def _no_grant(record: UserLevelRecord) -> dict:
        return {
            'granted': False,
            'xp_gained': 0,
            'old_level': record.level,
            'new_level': record.level,
            'total_xp': record.xp,
            'leveled_up': False
        }

    async def get_record(self, user_id, guild_id) -> Optional[UserLevelRecord]:
        """레코드 조회 (없으면 None)"""
        _check_ids(user_id, guild_id)
        return await self.store.find(str(user_id), str(guild_id))

    async def get_progress(self, user_id, guild_id) -> Optional[dict]:
        """사용자의 레벨 정보 조회 (기록이 없으면 None)"""
        record = await self.get_record(user_id, guild_id)
        if record is None:
            return None

        progress = get_xp_progress(record.xp, record.level)
        progress.update({
            'level': record.level,
            'xp': record.xp,
            'total_messages': record.total_messages
        })
        return progress

    async def get_rank(self, user_id, guild_id) -> Optional[int]:
        """
        서버 내 순위 (1부터). 자신보다 XP가 '큰' 사용자 수 + 1이므로 동점자는 같은 순위.
        기록이 없으면 None
        """
        record = await self.get_record(user_id, guild_id)
        if record is None:
            return None
        higher = await self.store.count_where(record.guild_id, record.xp)
        return higher + 1

    async def get_leaderboard(self, guild_id, limit: int = 10, offset: int = 0) -> List[UserLevelRecord]:
        """XP 내림차순, 동점이면 레벨 내림차순"""
        _check_id(guild_id, "guild_id")
        if limit <= 0:
            return []
        return await self.store.query_by_guild(str(guild_id), limit, offset)

    async def get_total_users(self, guild_id) -> int:
        """서버에 기록된 사용자 수"""
        _check_id(guild_id, "guild_id")
        return await self.store.count_guild(str(guild_id))

    async def reset(self, user_id, guild_id, now: Optional[float] = None) -> bool:
        """
        XP / 레벨 / 메시지 수 / 쿨다운 기준 시각 초기화. 레코드는 남긴다.
        Returns: 초기화할 레코드가 있었는지 여부
        """
        _check_ids(user_id, guild_id)
        user_id, guild_id = str(user_id), str(guild_id)
        now = self._now(now)

        async with self._locked(user_id, guild_id):
            record = await self.store.find(user_id, guild_id)
            if record is None:
                return False

            record.xp = 0
            record.level = 0
            record.total_messages = 0
            record.last_xp_time = 0
            record.updated_at = now
            await self.store.save(record)

        logger.info("[LevelingEngine] XP 초기화 (user=%s, guild=%s)", user_id, guild_id)
        return True

    async def delete(self, user_id, guild_id) -> bool:
        """레코드 삭제 (관리자 명령어)"""
        _check_ids(user_id, guild_id)
        user_id, guild_id = str(user_id), str(guild_id)

        async with self._locked(user_id, guild_id):
            deleted = await self.store.delete(user_id, guild_id)
        if deleted:
            logger.info("[LevelingEngine] 레코드 삭제 (user=%s, guild=%s)", user_id, guild_id)
        return deleted
