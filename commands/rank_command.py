# commands/rank_command.py - !leaderboard 명령어

from discord.ext import commands

from commands.level_command import check_rank_channel
from commands.level_embeds import render_leaderboard
from config import RANK_COMMAND_CHANNEL_ID


def rank_command(k, engine):

    @k.command(name="leaderboard", aliases=["순위", "lb"])
    @commands.guild_only()
    async def show_leaderboard(ctx, page: int = 1):
        """
        서버 XP 순위표를 표시합니다. (페이지당 10명, 상위 100명)
        사용법: !leaderboard [페이지]
        """
        if not check_rank_channel(ctx):
            await ctx.send(f"❌ 이 명령어는 <#{RANK_COMMAND_CHANNEL_ID}> 채널에서만 사용할 수 있습니다.")
            return

        if page < 1:
            await ctx.send("❌ 페이지는 1 이상이어야 합니다.")
            return

        embed = await render_leaderboard(engine, ctx.guild, page)
        await ctx.send(embed=embed)
