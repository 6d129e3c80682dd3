# commands/level_command.py - !rank 명령어

import discord
from discord.ext import commands

from commands.level_embeds import render_rank
from config import RANK_COMMAND_CHANNEL_ID
from utils import has_level_admin


def check_rank_channel(ctx) -> bool:
    """순위 명령어 채널 제한 (관리자는 제한 무시)"""
    if RANK_COMMAND_CHANNEL_ID is None or has_level_admin(ctx.author):
        return True
    return ctx.channel.id == RANK_COMMAND_CHANNEL_ID


def level_command(k, engine):

    @k.command(name="rank", aliases=["레벨", "level"])
    @commands.guild_only()
    async def show_rank(ctx, member: discord.Member = None):
        """
        사용자의 순위, 레벨, XP 정보를 표시합니다.
        사용법: !rank [@사용자]
        멘션을 하지 않으면 자신의 정보를 표시합니다.
        """
        if not check_rank_channel(ctx):
            await ctx.send(f"❌ 이 명령어는 <#{RANK_COMMAND_CHANNEL_ID}> 채널에서만 사용할 수 있습니다.")
            return

        target_member = member if member is not None else ctx.author
        embed = await render_rank(engine, target_member, ctx.guild.id)
        await ctx.send(embed=embed)
