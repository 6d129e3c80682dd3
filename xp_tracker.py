# xp_tracker.py - 채팅 메시지 XP 획득

import logging
from typing import Optional

import discord

from config import COMMAND_PREFIX, LEVEL_UP_ANNOUNCE
from exp_ignore_manager import is_ignored
from logger import send_levelup_log

logger = logging.getLogger(__name__)


def should_track(message, prefix: str = COMMAND_PREFIX) -> bool:
    """XP 지급 대상 메시지인지 확인"""
    # 봇 / 시스템 메시지 무시
    if message.author.bot:
        return False

    # DM 무시
    if message.guild is None:
        return False

    # 명령어 무시
    content = message.content or ""
    if content.startswith("/") or (prefix and content.startswith(prefix)):
        return False

    if is_ignored(message.guild.id, message.channel.id):
        return False

    return True


def create_level_up_embed(user, new_level: int) -> discord.Embed:
    """레벨업 알림 임베드"""
    embed = discord.Embed(
        title="🎉 레벨 업!",
        description=f"축하합니다 {user.mention}! **레벨 {new_level}**에 도달했습니다!",
        color=discord.Color.gold()
    )
    embed.set_thumbnail(url=user.display_avatar.url)
    embed.set_footer(text="계속 채팅해서 레벨을 올려보세요!")
    return embed


def create_progress_bar(percentage: int, length: int = 10) -> str:
    """[████░░░░░░] 40% 형식의 진행률 바"""
    percentage = min(max(int(percentage), 0), 100)
    filled = percentage * length // 100
    bar = "█" * filled + "░" * (length - filled)
    return f"[{bar}] {percentage}%"


async def handle_xp_gain(bot, engine, message) -> Optional[dict]:
    """
    메시지 하나에 대한 XP 처리
    Returns: engine.record_activity 결과 (대상이 아니면 None)
    """
    if not should_track(message):
        return None

    result = await engine.record_activity(message.author.id, message.guild.id)

    if result['leveled_up']:
        logger.info("[XPTracker] %s leveled up to %s in %s",
                    message.author, result['new_level'], message.guild.name)

        if LEVEL_UP_ANNOUNCE:
            try:
                embed = create_level_up_embed(message.author, result['new_level'])
                await message.channel.send(embed=embed)
            except discord.DiscordException as e:
                logger.warning("[XPTracker] 레벨업 메시지 전송 실패: %s", e)

        await send_levelup_log(
            bot,
            message.author,
            result['old_level'],
            result['new_level'],
            result['total_xp'],
            f"채팅 (<#{message.channel.id}>)"
        )

    return result


def setup_xp_tracker(bot, engine):
    """on_message 리스너 등록 (명령어 처리는 그대로 유지)"""

    async def on_message(message):
        await handle_xp_gain(bot, engine, message)

    bot.add_listener(on_message, "on_message")
    return on_message
