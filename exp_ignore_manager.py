# exp_ignore_manager.py - XP 지급 제외 채널 목록 관리 (길드별)

import json
import logging
import os
from typing import Dict, Optional, Set, Tuple

from config import XP_IGNORE_PATH

logger = logging.getLogger(__name__)

EXP_IGNORE_FILE = XP_IGNORE_PATH

# (파일 경로, 파싱된 내용). 메시지마다 파일을 읽지 않도록 메모리에 둔다.
_cache: Optional[Tuple[str, Dict[str, list]]] = None


def _read_file() -> Dict[str, list]:
    """파일에서 {guild_id: [channel_id, ...]} 로드 (키는 문자열)"""
    if not os.path.exists(EXP_IGNORE_FILE):
        return {}
    try:
        with open(EXP_IGNORE_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, ValueError) as e:
        logger.warning("[ExpIgnoreManager] 로드 오류: %s", e)
        return {}


def _load_raw() -> Dict[str, list]:
    """캐시된 내용 반환 (경로가 바뀌었거나 처음이면 파일에서 읽음)"""
    global _cache
    if _cache is None or _cache[0] != EXP_IGNORE_FILE:
        _cache = (EXP_IGNORE_FILE, _read_file())
    return _cache[1]


def _save_raw(data: Dict[str, list]):
    """파일에 저장하고 캐시 갱신"""
    global _cache
    _cache = (EXP_IGNORE_FILE, data)
    try:
        os.makedirs(os.path.dirname(os.path.abspath(EXP_IGNORE_FILE)), exist_ok=True)
        with open(EXP_IGNORE_FILE, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
    except OSError as e:
        logger.error("[ExpIgnoreManager] 저장 오류: %s", e)


def reload():
    """다음 조회 때 파일을 다시 읽도록 캐시 비우기"""
    global _cache
    _cache = None


def _to_id_set(values) -> Set[int]:
    return set(int(v) for v in values if isinstance(v, (int, str)) and str(v).isdigit())


def get_ignored_set(guild_id: int) -> Set[int]:
    """해당 길드에서 XP 지급 제외된 channel_id 집합 반환"""
    raw = _load_raw()
    key = str(guild_id)
    if key not in raw or not isinstance(raw[key], list):
        return set()
    return _to_id_set(raw[key])


def is_ignored(guild_id: int, channel_id: int) -> bool:
    """해당 길드에서 해당 채널이 XP 제외 채널인지 여부"""
    return int(channel_id) in get_ignored_set(guild_id)


def toggle_ignore(guild_id: int, channel_id: int) -> bool:
    """
    XP 지급 제외 토글.
    Returns: True = 이제 제외됨(지급 안 함), False = 이제 지급함(제외 해제)
    """
    raw = dict(_load_raw())
    key = str(guild_id)
    current = _to_id_set(raw.get(key, []) if isinstance(raw.get(key), list) else [])
    channel_id = int(channel_id)

    if channel_id in current:
        current.discard(channel_id)
        ignored = False
    else:
        current.add(channel_id)
        ignored = True

    if current:
        raw[key] = sorted(current)
    else:
        raw.pop(key, None)
    _save_raw(raw)
    return ignored
