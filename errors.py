# errors.py - 레벨 시스템 예외 정의


class LevelingError(Exception):
    """레벨 시스템 공통 예외"""


class ValidationError(LevelingError, ValueError):
    """잘못된 user_id / guild_id 입력"""


class PersistenceError(LevelingError, OSError):
    """저장소(SQLite / JSON) 읽기·쓰기 실패"""
