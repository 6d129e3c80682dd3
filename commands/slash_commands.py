# commands/slash_commands.py - Slash 명령어

"""
Prefix(!) 명령어와 같은 기능의 Slash(/) 명령어
- /rank, /leaderboard, /help (일반 사용자)
- /xp-reset (관리자)
"""

import discord
from discord import app_commands

from commands.help_command import build_levels_help_embed
from commands.level_embeds import render_leaderboard, render_rank
from config import RANK_COMMAND_CHANNEL_ID
from errors import PersistenceError
from logger import send_command_log
from utils import has_level_admin


def _check_rank_channel(interaction: discord.Interaction) -> bool:
    if RANK_COMMAND_CHANNEL_ID is None or has_level_admin(interaction.user):
        return True
    return interaction.channel_id == RANK_COMMAND_CHANNEL_ID


async def _reject_channel(interaction: discord.Interaction):
    await interaction.response.send_message(
        f"❌ 이 명령어는 <#{RANK_COMMAND_CHANNEL_ID}> 채널에서만 사용할 수 있습니다.",
        ephemeral=True
    )


async def setup_slash_commands(bot, engine):
    """Slash 명령어 등록"""

    @bot.tree.command(name="rank", description="내 레벨·XP 또는 다른 사용자의 정보를 조회합니다")
    @app_commands.describe(user="조회할 사용자 (비워두면 본인)")
    @app_commands.guild_only()
    async def slash_rank(interaction: discord.Interaction, user: discord.Member = None):
        if not _check_rank_channel(interaction):
            await _reject_channel(interaction)
            return

        await interaction.response.defer()
        target = user or interaction.user
        embed = await render_rank(engine, target, interaction.guild.id)
        await interaction.followup.send(embed=embed)

    @bot.tree.command(name="leaderboard", description="서버 XP 순위표를 조회합니다")
    @app_commands.describe(page="페이지 번호 (페이지당 10명)")
    @app_commands.guild_only()
    async def slash_leaderboard(interaction: discord.Interaction, page: app_commands.Range[int, 1] = 1):
        if not _check_rank_channel(interaction):
            await _reject_channel(interaction)
            return

        await interaction.response.defer()
        embed = await render_leaderboard(engine, interaction.guild, page)
        await interaction.followup.send(embed=embed)

    @bot.tree.command(name="xp-reset", description="[관리자] 사용자의 XP·레벨·메시지 수를 초기화합니다")
    @app_commands.describe(user="초기화할 사용자")
    @app_commands.guild_only()
    async def slash_xp_reset(interaction: discord.Interaction, user: discord.Member):
        if not has_level_admin(interaction.user):
            await interaction.response.send_message("❌ 이 명령어를 사용할 권한이 없습니다.", ephemeral=True)
            return

        try:
            existed = await engine.reset(user.id, interaction.guild.id)
        except PersistenceError:
            await interaction.response.send_message(
                "❌ 레벨 데이터를 저장하지 못했습니다. 잠시 후 다시 시도해주세요.", ephemeral=True
            )
            return

        if not existed:
            await interaction.response.send_message(f"❌ {user.mention}님의 레벨 기록이 없습니다.", ephemeral=True)
            return

        await send_command_log(interaction.client, interaction.user, f"/xp-reset {user.id}", user, "XP / 레벨 / 메시지 수 초기화")
        await interaction.response.send_message(f"✅ {user.mention}님의 XP를 초기화했습니다.", ephemeral=True)

    @bot.tree.command(name="help", description="레벨 시스템 도움말을 표시합니다")
    async def slash_help(interaction: discord.Interaction):
        await interaction.response.send_message(embed=build_levels_help_embed(), ephemeral=True)
