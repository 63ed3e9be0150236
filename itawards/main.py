import discord
from discord.ext import commands
from sqlalchemy.orm import Session, sessionmaker

from itawards.config import BOT_TOKEN, GUILD_ID, LOGGER
from itawards.database import SessionLocal, init_db


class ITAwardsBot(commands.Bot):
    db: sessionmaker[Session]

    def __init__(self, command_prefix: str, intents: discord.Intents) -> None:
        super().__init__(command_prefix=command_prefix, intents=intents)

    async def setup_hook(self) -> None:
        LOGGER.info("Starting setup_hook")

        if not init_db():
            LOGGER.error("Continuing without a verified database schema")
        self.db = SessionLocal

        await self.load_cogs()
        await self.sync_commands()

    async def load_cogs(self) -> None:
        LOGGER.info("Loading cogs")
        cog_modules = ["cogs.awards", "cogs.admin", "cogs.lottery"]

        for module in cog_modules:
            try:
                LOGGER.info(f"Loading extension: {module}")
                await self.load_extension(f"itawards.{module}")
                LOGGER.info(f"Loaded cog: {module}")
            except commands.ExtensionError as e:
                LOGGER.error(f"Failed to load cog {module}")
                LOGGER.error(f"Error: {e!s}")

    async def sync_commands(self) -> None:
        LOGGER.info("Syncing commands")
        if GUILD_ID:
            # Guild sync is immediate, handy while the awards are running
            guild = discord.Object(id=GUILD_ID)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            LOGGER.info(f"Synced {len(synced)} commands to guild {GUILD_ID}")
        else:
            # For syncing globally (can take up to an hour to propagate)
            synced = await self.tree.sync()
            LOGGER.info(f"Synced {len(synced)} commands globally")

    async def on_ready(self) -> None:
        if self.user:
            LOGGER.info(f"Logged in as {self.user} (ID: {self.user.id})")
        for guild in self.guilds:
            LOGGER.info(f"Guild {guild.name} (ID: {guild.id})")


async def main() -> None:
    intents = discord.Intents.none()
    intents.guilds = True  # Needed for basic guild/channel operations
    intents.guild_messages = True  # Needed to post lottery draws

    bot = ITAwardsBot(command_prefix="!", intents=intents)

    async with bot:
        await bot.start(BOT_TOKEN)


def run() -> None:
    import asyncio

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        LOGGER.info("Bot shutting down... 👋")


if __name__ == "__main__":
    run()
