# commands/help_command.py - 도움말

import discord

from config import BOT_BRAND, BRAND_TAGLINE, COMMAND_PREFIX, XP_COOLDOWN_SECONDS, XP_MAX, XP_MIN


def build_levels_help_embed() -> discord.Embed:
    """레벨 시스템 도움말 임베드"""
    embed = discord.Embed(
        title=f"📈 {BOT_BRAND} 레벨 도움말",
        description=(
            f"채팅을 하면 메시지마다 **{XP_MIN}~{XP_MAX} XP**를 얻습니다.\n"
            f"XP는 **{XP_COOLDOWN_SECONDS}초**에 한 번만 지급됩니다.\n"
            "레벨 = ⌊0.1 × √XP⌋ (레벨 5 = 2,500 XP)"
        ),
        color=discord.Color.blurple()
    )
    embed.add_field(
        name="일반 명령어",
        value=(
            f"`/rank` · `{COMMAND_PREFIX}rank [@사용자]` - 순위 카드\n"
            f"`/leaderboard` · `{COMMAND_PREFIX}leaderboard [페이지]` - 서버 순위표"
        ),
        inline=False
    )
    embed.add_field(
        name="관리자 명령어",
        value=(
            f"`/xp-reset` · `{COMMAND_PREFIX}xp reset [사용자]` - XP 초기화\n"
            f"`{COMMAND_PREFIX}xp delete [사용자]` - 레벨 기록 삭제\n"
            f"`{COMMAND_PREFIX}xp ignore [#채널]` - 채널 XP 지급 제외 토글"
        ),
        inline=False
    )
    embed.set_footer(text=BRAND_TAGLINE)
    return embed


def help_command(k):

    @k.command(name="help", aliases=["도움말"])
    async def show_help(ctx):
        """레벨 시스템 도움말"""
        await ctx.send(embed=build_levels_help_embed())
