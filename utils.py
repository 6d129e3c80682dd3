# utils.py - 공통 유틸리티 함수

import discord

from config import ADMIN_ROLE_NAME


def has_level_admin(member: discord.Member) -> bool:
    """서버 관리 권한이 있거나 관리자 역할을 가진 사용자인지 확인"""
    permissions = getattr(member, "guild_permissions", None)
    if permissions is not None and (permissions.administrator or permissions.manage_guild):
        return True
    return any(role.name == ADMIN_ROLE_NAME for role in getattr(member, "roles", []))
