import discord
from discord import app_commands
from discord.ext import commands

from itawards.config import LOGGER
from itawards.errors import Error, NotFoundError, VotingClosedError
from itawards.main import ITAwardsBot
from itawards.services.category import get_all_categories, get_category_by_name
from itawards.services.collaborator import get_collaborator_by_name, get_collaborators
from itawards.services.eligibility import get_eligible_collaborators
from itawards.services.nomination import (
    clear_nomination,
    get_voter_nominations,
    nominate,
)
from itawards.services.voter import authenticate
from itawards.services.voting_status import is_voting_open

INVALID_CODE_MESSAGE = "❌ Invalid employee code. Please contact an administrator."


class Awards(commands.Cog):
    """Voter-facing commands: browse categories and cast votes."""

    def __init__(self, bot: ITAwardsBot):
        self.bot: ITAwardsBot = bot
        LOGGER.info("Awards Cog Initialized")

    @app_commands.command(name="categories", description="List the award categories")
    async def categories(self, interaction: discord.Interaction) -> None:
        with self.bot.db.begin() as session:
            lines = [
                f"**{category.label}**"
                + (f"\n{category.description}" if category.description else "")
                for category in get_all_categories(session)
            ]

        if not lines:
            await interaction.response.send_message(
                "There are no award categories yet.", ephemeral=True
            )
            return

        embed = discord.Embed(
            title="🏆 IT Awards Categories",
            description="\n\n".join(lines),
            color=discord.Color.gold(),
        )
        embed.set_footer(text="Use /candidates to see who can be nominated.")
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(
        name="candidates", description="List who can be nominated in a category"
    )
    @app_commands.describe(category="The award category")
    async def candidates(self, interaction: discord.Interaction, category: str) -> None:
        with self.bot.db.begin() as session:
            found = get_category_by_name(session, category)
            if found is None:
                await interaction.response.send_message(
                    f"❌ {NotFoundError('Category', category)!s}", ephemeral=True
                )
                return

            title = f"Candidates for {found.label}"
            names = [
                f"• {c.full_name}" + (f" ({c.role})" if c.role else "")
                for c in get_eligible_collaborators(session, found.id)
            ]

        embed = discord.Embed(
            title=title,
            description="\n".join(names) or "Nobody can be nominated here yet.",
            color=discord.Color.gold(),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="vote", description="Nominate a collaborator in a category")
    @app_commands.describe(
        employee_code="Your employee code",
        category="The award category",
        collaborator="Full name of the collaborator you nominate",
    )
    async def vote(
        self,
        interaction: discord.Interaction,
        employee_code: str,
        category: str,
        collaborator: str,
    ) -> None:
        """Cast or change a vote. Voting again in a category replaces the pick."""
        try:
            with self.bot.db.begin() as session:
                if not is_voting_open(session):
                    raise VotingClosedError()

                voter = authenticate(session, employee_code)
                if voter is None:
                    message = INVALID_CODE_MESSAGE
                else:
                    found_category = get_category_by_name(session, category)
                    if found_category is None:
                        raise NotFoundError("Category", category)
                    nominee = get_collaborator_by_name(session, collaborator)
                    if nominee is None:
                        raise NotFoundError("Collaborator", collaborator)

                    nominate(
                        session,
                        voter_id=voter.id,
                        category_id=found_category.id,
                        collaborator_id=nominee.id,
                    )
                    message = (
                        f"✅ {voter.full_name}, your vote for **{nominee.full_name}** "
                        f"in **{found_category.label}** has been recorded!"
                    )
        except Error as e:
            message = f"❌ {e!s}"
        except Exception as e:
            LOGGER.error(f"Error in vote command: {e!s}")
            message = "❌ Error recording your vote. Try again later."

        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="withdraw", description="Withdraw your vote in a category")
    @app_commands.describe(
        employee_code="Your employee code", category="The award category"
    )
    async def withdraw(
        self, interaction: discord.Interaction, employee_code: str, category: str
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                if not is_voting_open(session):
                    raise VotingClosedError()

                voter = authenticate(session, employee_code)
                if voter is None:
                    message = INVALID_CODE_MESSAGE
                else:
                    found_category = get_category_by_name(session, category)
                    if found_category is None:
                        raise NotFoundError("Category", category)

                    if clear_nomination(session, voter.id, found_category.id):
                        message = (
                            f"🗑️ Your vote in **{found_category.label}** "
                            f"was withdrawn."
                        )
                    else:
                        message = (
                            f"You have no vote in **{found_category.label}** "
                            f"to withdraw."
                        )
        except Error as e:
            message = f"❌ {e!s}"
        except Exception as e:
            LOGGER.error(f"Error in withdraw command: {e!s}")
            message = "❌ Error withdrawing your vote. Try again later."

        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="my-votes", description="Show your current votes")
    @app_commands.describe(employee_code="Your employee code")
    async def my_votes(self, interaction: discord.Interaction, employee_code: str) -> None:
        with self.bot.db.begin() as session:
            voter = authenticate(session, employee_code)
            if voter is None:
                await interaction.response.send_message(
                    INVALID_CODE_MESSAGE, ephemeral=True
                )
                return

            picks = get_voter_nominations(session, voter.id)
            nominees = get_collaborators(session, list(picks.values()))
            lines = []
            for category in get_all_categories(session):
                nominee = nominees.get(picks.get(category.id, -1))
                lines.append(
                    f"**{category.label}**: "
                    + (nominee.full_name if nominee else "_no vote yet_")
                )
            title = f"🗳️ Votes of {voter.full_name}"
            footer = f"{len(picks)} of {len(lines)} categories voted"

        embed = discord.Embed(
            title=title,
            description="\n".join(lines) or "There are no award categories yet.",
            color=discord.Color.blue(),
        )
        embed.set_footer(text=footer)
        await interaction.response.send_message(embed=embed, ephemeral=True)


async def setup(bot: ITAwardsBot) -> None:
    """Load the Awards cog."""
    await bot.add_cog(Awards(bot))
