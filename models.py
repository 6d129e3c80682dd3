# models.py - 레벨 데이터 모델

from typing import Optional


class UserLevelRecord:
    """(user_id, guild_id) 한 쌍의 레벨 데이터"""
    def __init__(self, user_id: str, guild_id: str, xp: int = 0, level: int = 0,
                 total_messages: int = 0, last_xp_time: int = 0,
                 created_at: Optional[int] = None, updated_at: Optional[int] = None):
        self.user_id = str(user_id)
        self.guild_id = str(guild_id)
        self.xp = xp
        self.level = level  # 항상 calculate_level(xp)
        self.total_messages = total_messages  # 지급이 승인된 메시지 수
        self.last_xp_time = last_xp_time  # 마지막 지급 시각 (Unix 초), 쿨다운 기준
        self.created_at = created_at
        self.updated_at = updated_at

    @classmethod
    def from_row(cls, row) -> "UserLevelRecord":
        """DB 행 또는 dict에서 생성"""
        return cls(
            user_id=row['user_id'],
            guild_id=row['guild_id'],
            xp=int(row['xp']),
            level=int(row['level']),
            total_messages=int(row['total_messages']),
            last_xp_time=int(row['last_xp_time']),
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )

    def to_dict(self) -> dict:
        return {
            'user_id': self.user_id,
            'guild_id': self.guild_id,
            'xp': self.xp,
            'level': self.level,
            'total_messages': self.total_messages,
            'last_xp_time': self.last_xp_time,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    def __eq__(self, other):
        if not isinstance(other, UserLevelRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"UserLevelRecord(user_id={self.user_id!r}, guild_id={self.guild_id!r}, "
                f"xp={self.xp}, level={self.level}, total_messages={self.total_messages})")
