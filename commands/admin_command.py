# commands/admin_command.py - 관리자 전용 명령어

import logging
import re

import discord
from discord.ext import commands

from errors import PersistenceError
from exp_ignore_manager import toggle_ignore
from logger import send_command_log
from utils import has_level_admin

logger = logging.getLogger(__name__)


def check_admin():
    """서버 관리 권한 또는 관리자 역할을 가진 사용자만 사용 가능한 체크"""
    async def predicate(ctx):
        return has_level_admin(ctx.author)
    return commands.check(predicate)


def parse_user_id(ctx, user_input) -> int:
    """사용자 ID 파싱 - 'i' 입력 시 자기 자신, 멘션(<@123>) 또는 숫자 ID"""
    if isinstance(user_input, str) and user_input.lower() == 'i':
        return ctx.author.id

    match = re.fullmatch(r"<@!?(\d+)>", str(user_input).strip())
    if match:
        return int(match.group(1))

    try:
        return int(user_input)
    except (ValueError, TypeError):
        raise commands.BadArgument("사용자 ID는 숫자 또는 멘션이어야 합니다. 'i'를 입력하면 자기 자신에게 적용됩니다.")


async def handle_xp_error(ctx, error):
    """!xp 명령어 그룹 / 하위 명령어 공통 오류 처리"""
    if isinstance(error, commands.NoPrivateMessage):
        await ctx.send("❌ 이 명령어는 서버에서만 사용할 수 있습니다.")
    elif isinstance(error, commands.CheckFailure):
        await ctx.send("❌ 이 명령어를 사용할 권한이 없습니다.")
    elif isinstance(error, commands.BadArgument):
        await ctx.send(f"❌ 잘못된 입력입니다: {error}")
    else:
        logger.error("[AdminCommand] %s 실행 중 오류", ctx.command, exc_info=error)
        await ctx.send("❌ 명령어 실행 중 오류가 발생했습니다.")


def admin_command(k, engine):

    # ========== !xp 명령어 그룹 ==========
    @k.group(name="xp")
    @commands.guild_only()
    @check_admin()
    async def xp_group(ctx):
        """XP 관리 명령어 그룹"""
        if ctx.invoked_subcommand is None:
            await ctx.send("❌ 사용법: `!xp reset [사용자]`, `!xp delete [사용자]`, `!xp ignore [#채널]`")

    @xp_group.command(name="reset")
    async def reset_xp_command(ctx, user_id_input=None):
        """사용자의 XP / 레벨 / 메시지 수 초기화"""
        if user_id_input is None:
            await ctx.send("❌ 사용법: `!xp reset [사용자ID|@멘션]` 또는 `!xp reset i`")
            return

        try:
            target_user_id = parse_user_id(ctx, user_id_input)
        except commands.BadArgument as e:
            await ctx.send(f"❌ {e}")
            return

        target_user = ctx.guild.get_member(target_user_id)
        user_display = f"{target_user.display_name} ({target_user.mention})" if target_user else f"ID: {target_user_id}"

        try:
            existed = await engine.reset(target_user_id, ctx.guild.id)
        except PersistenceError:
            await ctx.send("❌ 레벨 데이터를 저장하지 못했습니다. 잠시 후 다시 시도해주세요.")
            return

        if not existed:
            await ctx.send(f"❌ {user_display}님의 레벨 기록이 없습니다.")
            return

        await send_command_log(ctx.bot, ctx.author, f"!xp reset {target_user_id}", target_user, "XP / 레벨 / 메시지 수 초기화")

        embed = discord.Embed(title="XP 초기화", color=discord.Color.orange())
        embed.add_field(name="대상 사용자", value=user_display, inline=False)
        embed.add_field(name="결과", value="XP, 레벨, 메시지 수가 0으로 초기화되었습니다.", inline=False)
        embed.set_footer(text=f"명령어 실행자: {ctx.author.display_name}")
        await ctx.send(embed=embed)

    @xp_group.command(name="delete")
    async def delete_xp_command(ctx, user_id_input=None):
        """사용자의 레벨 기록 삭제"""
        if user_id_input is None:
            await ctx.send("❌ 사용법: `!xp delete [사용자ID|@멘션]`")
            return

        try:
            target_user_id = parse_user_id(ctx, user_id_input)
        except commands.BadArgument as e:
            await ctx.send(f"❌ {e}")
            return

        target_user = ctx.guild.get_member(target_user_id)

        try:
            deleted = await engine.delete(target_user_id, ctx.guild.id)
        except PersistenceError:
            await ctx.send("❌ 레벨 데이터를 삭제하지 못했습니다. 잠시 후 다시 시도해주세요.")
            return

        if not deleted:
            await ctx.send(f"❌ ID {target_user_id} 사용자의 레벨 기록이 없습니다.")
            return

        await send_command_log(ctx.bot, ctx.author, f"!xp delete {target_user_id}", target_user, "레벨 기록 삭제")
        await ctx.send(f"✅ ID {target_user_id} 사용자의 레벨 기록을 삭제했습니다.")

    @xp_group.command(name="ignore")
    async def ignore_channel_command(ctx, channel: discord.TextChannel = None):
        """채널의 XP 지급 제외 토글 (채널을 생략하면 현재 채널)"""
        target_channel = channel or ctx.channel
        ignored = toggle_ignore(ctx.guild.id, target_channel.id)

        status = "XP 지급 제외" if ignored else "XP 지급"
        await send_command_log(ctx.bot, ctx.author, f"!xp ignore {target_channel.id}", None, f"{target_channel.mention} → {status}")
        await ctx.send(f"✅ {target_channel.mention} 채널은 이제 **{status}** 채널입니다.")

    # 하위 명령어 오류는 각 명령어의 on_error로 가므로 모두 등록
    for command in (xp_group, reset_xp_command, delete_xp_command, ignore_channel_command):
        command.error(handle_xp_error)
