from dataclasses import dataclass

import discord
from discord import app_commands
from discord.ext import commands

from itawards.config import LOGGER, LOTTERY_CHANNEL_ID
from itawards.errors import EmptyRosterError
from itawards.main import ITAwardsBot
from itawards.services.collaborator import get_lottery_roster
from itawards.services.draw import DrawEngine

LOTTERY_COLORS = [
    discord.Color.red(),
    discord.Color.green(),
    discord.Color.gold(),
    discord.Color.blue(),
]


@dataclass(frozen=True)
class LotteryCard:
    """Snapshot of a collaborator taking part in the lottery."""

    collaborator_id: int
    full_name: str
    avatar_url: str
    lottery_name: str
    lottery_shout: str | None


def build_lottery_embed(card: LotteryCard, draw_number: int) -> discord.Embed:
    embed = discord.Embed(
        title=f"🎄 {card.lottery_name} 🎄",
        description=f"## {card.lottery_shout}" if card.lottery_shout else None,
        color=LOTTERY_COLORS[draw_number % len(LOTTERY_COLORS)],
    )
    embed.set_thumbnail(url=card.avatar_url)
    embed.set_footer(text=card.full_name)
    return embed


class Lottery(commands.Cog):
    """Reveals lottery collaborators one at a time, without repeats per round."""

    def __init__(self, bot: ITAwardsBot):
        self.bot: ITAwardsBot = bot
        self.engine: DrawEngine[LotteryCard] | None = None
        self.draw_count = 0
        LOGGER.info("Lottery Cog Initialized")

    def load_roster(self) -> DrawEngine[LotteryCard]:
        """Reload the roster from the database and start a fresh round."""
        with self.bot.db.begin() as session:
            cards = [
                LotteryCard(
                    collaborator_id=c.id,
                    full_name=c.full_name,
                    avatar_url=c.avatar_url,
                    lottery_name=c.lottery_name or c.full_name,
                    lottery_shout=c.lottery_shout,
                )
                for c in get_lottery_roster(session)
            ]

        self.engine = DrawEngine(cards)
        self.draw_count = 0
        LOGGER.info(f"Lottery roster loaded with {len(cards)} collaborator(s)")
        return self.engine

    @app_commands.command(name="lottery-next", description="Reveal the next collaborator")
    async def lottery_next(self, interaction: discord.Interaction) -> None:
        try:
            engine = self.engine or self.load_roster()
            card = engine.next()
        except EmptyRosterError as e:
            await interaction.response.send_message(f"❌ {e!s}", ephemeral=True)
            return

        self.draw_count += 1
        embed = build_lottery_embed(card, self.draw_count)
        LOGGER.info(f"Lottery draw #{self.draw_count}: {card.full_name}")

        channel = self.bot.get_channel(LOTTERY_CHANNEL_ID) if LOTTERY_CHANNEL_ID else None
        if channel and isinstance(channel, discord.TextChannel):
            await channel.send(embed=embed)
            await interaction.response.send_message(
                f"🎁 Revealed **{card.lottery_name}** in {channel.mention}. "
                f"{engine.remaining} left this round.",
                ephemeral=True,
            )
        else:
            await interaction.response.send_message(embed=embed)

    @app_commands.command(
        name="lottery-reset", description="Reload the lottery roster and start over"
    )
    async def lottery_reset(self, interaction: discord.Interaction) -> None:
        try:
            count = len(self.load_roster().roster)
        except EmptyRosterError as e:
            # Drop the old round, its collaborators may no longer exist
            self.engine = None
            self.draw_count = 0
            await interaction.response.send_message(f"❌ {e!s}", ephemeral=True)
            return
        await interaction.response.send_message(
            f"🔄 Lottery reset with **{count}** collaborator(s).", ephemeral=True
        )


async def setup(bot: ITAwardsBot) -> None:
    """Load the Lottery cog."""
    await bot.add_cog(Lottery(bot))
