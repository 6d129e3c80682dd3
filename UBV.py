# UBV.py - Main

import asyncio
import logging

import discord
from discord.ext import commands

from config import (
    DISCORD_TOKEN, COMMAND_PREFIX, LOG_LEVEL,
    LEVELS_STORAGE, DB_PATH, LEVELS_JSON_PATH,
)
from database import open_levels_store
from level_system import LevelingEngine
from xp_tracker import setup_xp_tracker
from commands.level_command import level_command
from commands.rank_command import rank_command
from commands.admin_command import admin_command
from commands.help_command import help_command
from commands.slash_commands import setup_slash_commands

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("ubv")


class UBVBot(commands.Bot):
    def __init__(self, engine: LevelingEngine):
        # Permission - Intents
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        super().__init__(command_prefix=COMMAND_PREFIX, intents=intents, help_command=None)
        self.engine = engine

    async def setup_hook(self):
        # 저장소 열기
        await self.engine.store.open()
        logger.info("[Database] Levels store opened (%s)", LEVELS_STORAGE)

        await setup_slash_commands(self, self.engine)
        synced = await self.tree.sync()
        logger.info("[Slash] %d commands synced", len(synced))

    async def on_ready(self):
        logger.info("Logged in as %s (%d guilds)", self.user, len(self.guilds))

    async def close(self):
        await super().close()
        await self.engine.store.close()


def create_bot() -> UBVBot:
    store = open_levels_store(LEVELS_STORAGE, DB_PATH, LEVELS_JSON_PATH)
    engine = LevelingEngine(store)
    bot = UBVBot(engine)

    # modules
    setup_xp_tracker(bot, engine)
    level_command(bot, engine)
    rank_command(bot, engine)
    admin_command(bot, engine)
    help_command(bot)
    return bot


async def main():
    if not DISCORD_TOKEN:
        raise SystemExit("DISCORD_TOKEN이 설정되지 않았습니다. .env 파일을 확인하세요.")

    bot = create_bot()
    async with bot:
        await bot.start(DISCORD_TOKEN)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down")
