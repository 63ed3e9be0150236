import csv
import io
from collections import Counter

import discord
from discord import app_commands
from discord.ext import commands
from sqlalchemy.orm import Session

from itawards.config import ADMIN_ROLE_ID, LOGGER
from itawards.constants import Place
from itawards.errors import Error, NotFoundError
from itawards.main import ITAwardsBot
from itawards.models.voter import Voter
from itawards.services.category import (
    create_category,
    delete_category,
    get_all_categories,
    get_category_by_name,
    update_category,
)
from itawards.services.collaborator import (
    create_collaborator,
    delete_collaborator,
    get_collaborator_by_name,
    get_collaborators,
    update_collaborator,
)
from itawards.services.eligibility import (
    get_collaborator_categories,
    set_collaborator_categories,
)
from itawards.services.nomination import clear_all_nominations, get_all_nominations
from itawards.services.tally import (
    format_standings_output,
    podium,
    tally,
    voting_statistics,
    winner_at,
)
from itawards.services.voter import (
    authenticate,
    count_voters,
    create_voter,
    delete_voter,
    get_all_voters,
    import_voters,
    update_voter,
)
from itawards.services.voting_status import set_voting_open

MAX_IMPORT_ERRORS_SHOWN = 10
MAX_STANDINGS_SHOWN = 25
ALL_CATEGORIES = "all"
CLEAR_VALUE = "-"


def parse_voters_csv(content: bytes) -> list[dict[str, str]]:
    """Read ``employee_code``/``full_name`` rows from an uploaded CSV file."""
    reader = csv.DictReader(io.StringIO(content.decode("utf-8-sig")))
    if reader.fieldnames is None or not {"employee_code", "full_name"} <= {
        name.strip().lower() for name in reader.fieldnames
    }:
        raise ValueError("The CSV needs `employee_code` and `full_name` columns")
    return [
        {key.strip().lower(): (value or "") for key, value in row.items() if key}
        for row in reader
    ]


def resolve_categories(session: Session, names: str) -> list[int]:
    """Map a comma separated list of category names to their ids.

    ``all`` (or nothing) means every category, which is stored as no links.
    """
    if names.strip().lower() == ALL_CATEGORIES:
        return []

    category_ids = []
    for name in filter(None, (n.strip() for n in names.split(","))):
        category = get_category_by_name(session, name)
        if category is None:
            raise NotFoundError("Category", name)
        category_ids.append(category.id)
    return category_ids


def format_voters_csv(voters: list[Voter], votes: Counter[int]) -> bytes:
    """Export voters with the number of votes they cast, in the import format."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["employee_code", "full_name", "votes"])
    for voter in voters:
        writer.writerow([voter.employee_code, voter.full_name, votes[voter.id]])
    return buffer.getvalue().encode("utf-8")


def _clearable(value: str | None) -> str | None:
    # Discord cannot send an empty option, "-" stands for "remove this value"
    if value is not None and value.strip() == CLEAR_VALUE:
        return ""
    return value


def _eligibility_scope(category_ids: list[int]) -> str:
    return f"{len(category_ids)} category(ies)" if category_ids else "every category"


@app_commands.guild_only()
@app_commands.default_permissions(manage_guild=True)
class Admin(commands.GroupCog, group_name="awards-admin"):
    """Administration of categories, collaborators, voters and results."""

    def __init__(self, bot: ITAwardsBot):
        self.bot: ITAwardsBot = bot
        super().__init__()
        LOGGER.info("Admin Cog Initialized")

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if not ADMIN_ROLE_ID:
            return True
        user = interaction.user
        return isinstance(user, discord.Member) and any(
            role.id == ADMIN_ROLE_ID for role in user.roles
        )

    async def _reply(self, interaction: discord.Interaction, message: str) -> None:
        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="results", description="Show the podium of a category")
    @app_commands.describe(category="The award category")
    async def results(self, interaction: discord.Interaction, category: str) -> None:
        with self.bot.db.begin() as session:
            found = get_category_by_name(session, category)
            if found is None:
                await self._reply(
                    interaction, f"❌ {NotFoundError('Category', category)!s}"
                )
                return

            ranked = tally(get_all_nominations(session, found.id)).get(found.id, [])
            top = podium(ranked)
            names = get_collaborators(session, [entry.collaborator_id for entry in top])
            lines = [
                f"{Place(entry.position).medal} **{names[entry.collaborator_id].full_name}**"
                f" - {entry.count} vote(s)"
                for entry in top
                if entry.collaborator_id in names
            ]
            title = f"Results for {found.label}"
            total = sum(entry.count for entry in ranked)

        embed = discord.Embed(
            title=title,
            description="\n".join(lines) or "No votes yet.",
            color=discord.Color.gold(),
        )
        embed.set_footer(text=f"{total} vote(s) in this category")
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(
        name="standings", description="Show the full ranking of a category"
    )
    @app_commands.describe(category="The award category")
    async def standings(self, interaction: discord.Interaction, category: str) -> None:
        with self.bot.db.begin() as session:
            found = get_category_by_name(session, category)
            if found is None:
                await self._reply(
                    interaction, f"❌ {NotFoundError('Category', category)!s}"
                )
                return

            ranked = tally(get_all_nominations(session, found.id)).get(found.id, [])
            if not ranked:
                await self._reply(interaction, f"No votes yet in {found.label}.")
                return

            names = {
                collaborator_id: collaborator.full_name
                for collaborator_id, collaborator in get_collaborators(
                    session, [entry.collaborator_id for entry in ranked]
                ).items()
            }
            response = f"**{found.label}**\n"
            response += (
                "```\n"
                + format_standings_output(ranked, names, limit=MAX_STANDINGS_SHOWN)
                + "```"
            )
            if len(ranked) > MAX_STANDINGS_SHOWN:
                response += f"\n…and {len(ranked) - MAX_STANDINGS_SHOWN} more."

        await self._reply(interaction, response)

    @app_commands.command(name="statistics", description="Show voting statistics")
    async def statistics(self, interaction: discord.Interaction) -> None:
        with self.bot.db.begin() as session:
            categories = get_all_categories(session)
            stats = voting_statistics(
                get_all_nominations(session), count_voters(session), categories
            )
            names = get_collaborators(
                session, [nominee.collaborator_id for nominee in stats.top_nominees]
            )

            embed = discord.Embed(title="📊 Voting Statistics", color=discord.Color.blue())
            embed.add_field(name="Votes", value=str(stats.total_nominations))
            embed.add_field(name="Voters", value=str(stats.total_voters))
            embed.add_field(
                name="Participation",
                value=f"{stats.voters_who_voted} voted ({stats.participation_rate}%)",
            )
            embed.add_field(
                name="Votes by category",
                value="\n".join(
                    f"{category.label}: {stats.votes_by_category[category.id]}"
                    for category in categories
                )
                or "No categories",
                inline=False,
            )
            embed.add_field(
                name="Top nominees",
                value="\n".join(
                    f"{i}. {names[n.collaborator_id].full_name} - {n.total_votes} "
                    f"vote(s) in {len(n.category_ids)} category(ies)"
                    for i, n in enumerate(stats.top_nominees, start=1)
                    if n.collaborator_id in names
                )
                or "No votes yet",
                inline=False,
            )

        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="winner", description="Reveal a podium place")
    @app_commands.describe(category="The award category", position="Podium place")
    async def winner(
        self,
        interaction: discord.Interaction,
        category: str,
        position: app_commands.Range[int, 1, 3],
    ) -> None:
        place = Place(position)
        with self.bot.db.begin() as session:
            found = get_category_by_name(session, category)
            if found is None:
                await self._reply(
                    interaction, f"❌ {NotFoundError('Category', category)!s}"
                )
                return

            ranked = tally(get_all_nominations(session, found.id)).get(found.id, [])
            entry = winner_at(ranked, place.value)
            collaborator = (
                get_collaborators(session, [entry.collaborator_id]).get(
                    entry.collaborator_id
                )
                if entry
                else None
            )
            if entry is None or collaborator is None:
                await self._reply(
                    interaction, f"There is no {place.name.lower()} place in {found.label} yet."
                )
                return

            embed = discord.Embed(
                title=f"{place.medal} {found.label}",
                description=f"# {collaborator.full_name}\n{collaborator.role or ''}",
                color=discord.Color.gold(),
            )
            embed.set_image(url=collaborator.avatar_url)
            embed.set_footer(text=f"{entry.count} vote(s)")

        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="voting-status", description="Open or close voting")
    @app_commands.describe(is_open="True to accept votes, False to stop them")
    async def voting_status(self, interaction: discord.Interaction, is_open: bool) -> None:
        with self.bot.db.begin() as session:
            set_voting_open(session, is_open)
        await self._reply(
            interaction, "🟢 Voting is now open." if is_open else "🔴 Voting is now closed."
        )

    @app_commands.command(name="reset-votes", description="Delete every vote")
    async def reset_votes(self, interaction: discord.Interaction) -> None:
        try:
            with self.bot.db.begin() as session:
                removed = clear_all_nominations(session)
        except Error as e:
            await self._reply(interaction, f"❌ {e!s}")
            return
        LOGGER.info(f"{interaction.user} cleared {removed} nomination(s)")
        await self._reply(interaction, f"🧹 Removed **{removed}** vote(s).")

    @app_commands.command(name="category-add", description="Create an award category")
    async def category_add(
        self,
        interaction: discord.Interaction,
        name: str,
        description: str | None = None,
        emoji: str | None = None,
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                if get_category_by_name(session, name) is not None:
                    raise ValueError(f"Category {name} already exists")
                category = create_category(session, name, description, emoji)
                message = f"✅ Created category **{category.label}**."
        except ValueError as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(
        name="category-delete", description="Delete a category and its votes"
    )
    async def category_delete(self, interaction: discord.Interaction, name: str) -> None:
        try:
            with self.bot.db.begin() as session:
                category = get_category_by_name(session, name)
                if category is None:
                    raise NotFoundError("Category", name)
                label = category.label
                removed = delete_category(session, category.id)
                message = f"🗑️ Deleted **{label}** and {removed} vote(s)."
        except Error as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(name="category-edit", description="Edit an award category")
    @app_commands.describe(
        name="Current name of the category",
        new_name="New name",
        description="New description, `-` to remove it",
        emoji="New emoji, `-` to remove it",
    )
    async def category_edit(
        self,
        interaction: discord.Interaction,
        name: str,
        new_name: str | None = None,
        description: str | None = None,
        emoji: str | None = None,
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                category = get_category_by_name(session, name)
                if category is None:
                    raise NotFoundError("Category", name)
                if new_name is not None:
                    existing = get_category_by_name(session, new_name)
                    if existing is not None and existing.id != category.id:
                        raise ValueError(f"Category {new_name} already exists")

                update_category(
                    session,
                    category.id,
                    name=new_name,
                    description=_clearable(description),
                    emoji=_clearable(emoji),
                )
                message = f"✅ Updated category **{category.label}**."
        except (Error, ValueError) as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(name="collaborator-add", description="Add a collaborator")
    @app_commands.describe(
        categories="Comma separated categories, leave empty or use `all` for all of them"
    )
    async def collaborator_add(
        self,
        interaction: discord.Interaction,
        full_name: str,
        avatar_url: str,
        role: str | None = None,
        lottery_name: str | None = None,
        lottery_shout: str | None = None,
        categories: str | None = None,
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                category_ids = resolve_categories(session, categories or "")
                collaborator = create_collaborator(
                    session, full_name, avatar_url, role, lottery_name, lottery_shout
                )
                set_collaborator_categories(session, collaborator.id, category_ids)
                scope = _eligibility_scope(category_ids)
                message = f"✅ Added **{collaborator.full_name}**, eligible in {scope}."
        except (Error, ValueError) as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(
        name="collaborator-edit", description="Edit a collaborator and their lottery card"
    )
    @app_commands.describe(
        full_name="Current name of the collaborator",
        new_name="New full name",
        lottery_name="Name shown on the lottery card, `-` to remove it",
        lottery_shout="Shout shown on the lottery card, `-` to remove it",
        categories="Comma separated categories, or `all` to allow every category",
    )
    async def collaborator_edit(
        self,
        interaction: discord.Interaction,
        full_name: str,
        new_name: str | None = None,
        avatar_url: str | None = None,
        role: str | None = None,
        lottery_name: str | None = None,
        lottery_shout: str | None = None,
        categories: str | None = None,
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                collaborator = get_collaborator_by_name(session, full_name)
                if collaborator is None:
                    raise NotFoundError("Collaborator", full_name)

                update_collaborator(
                    session,
                    collaborator.id,
                    full_name=new_name,
                    avatar_url=avatar_url,
                    role=_clearable(role),
                    lottery_name=_clearable(lottery_name),
                    lottery_shout=_clearable(lottery_shout),
                )
                if categories is not None:
                    set_collaborator_categories(
                        session, collaborator.id, resolve_categories(session, categories)
                    )
                session.flush()

                scope = _eligibility_scope(
                    get_collaborator_categories(session, collaborator.id)
                )
                message = f"✅ Updated **{collaborator.full_name}**, eligible in {scope}."
        except (Error, ValueError) as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(
        name="collaborator-delete", description="Delete a collaborator and their votes"
    )
    async def collaborator_delete(
        self, interaction: discord.Interaction, full_name: str
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                collaborator = get_collaborator_by_name(session, full_name)
                if collaborator is None:
                    raise NotFoundError("Collaborator", full_name)
                name = collaborator.full_name
                removed = delete_collaborator(session, collaborator.id)
                message = f"🗑️ Deleted **{name}** and {removed} vote(s)."
        except Error as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(name="voter-add", description="Register a voter")
    async def voter_add(
        self, interaction: discord.Interaction, employee_code: str, full_name: str
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                voter = create_voter(session, employee_code, full_name)
                message = f"✅ Registered **{voter.full_name}** ({voter.employee_code})."
        except ValueError as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(
        name="voter-delete", description="Delete a voter and their votes"
    )
    async def voter_delete(
        self, interaction: discord.Interaction, employee_code: str
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                voter = authenticate(session, employee_code)
                if voter is None:
                    raise NotFoundError("Voter", employee_code)
                name = voter.full_name
                removed = delete_voter(session, voter.id)
                message = f"🗑️ Deleted **{name}** and {removed} vote(s)."
        except Error as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(name="voter-edit", description="Edit a registered voter")
    @app_commands.describe(
        employee_code="Current employee code of the voter",
        new_code="New employee code",
        full_name="New full name",
    )
    async def voter_edit(
        self,
        interaction: discord.Interaction,
        employee_code: str,
        new_code: str | None = None,
        full_name: str | None = None,
    ) -> None:
        try:
            with self.bot.db.begin() as session:
                voter = authenticate(session, employee_code)
                if voter is None:
                    raise NotFoundError("Voter", employee_code)
                voter = update_voter(session, voter.id, new_code, full_name)
                message = f"✅ Updated **{voter.full_name}** ({voter.employee_code})."
        except (Error, ValueError) as e:
            message = f"❌ {e!s}"
        await self._reply(interaction, message)

    @app_commands.command(name="voters", description="Export the registered voters")
    async def voters(self, interaction: discord.Interaction) -> None:
        with self.bot.db.begin() as session:
            voters = get_all_voters(session)
            votes = Counter(n.voter_id for n in get_all_nominations(session))
            if not voters:
                await self._reply(interaction, "No voters registered yet.")
                return
            content = format_voters_csv(voters, votes)
            voted = sum(1 for voter in voters if votes[voter.id])

        await interaction.response.send_message(
            f"👥 **{len(voters)}** voter(s) registered, {voted} of them have voted.",
            file=discord.File(io.BytesIO(content), filename="voters.csv"),
            ephemeral=True,
        )

    @app_commands.command(
        name="voter-import", description="Import voters from a CSV file"
    )
    @app_commands.describe(file="CSV with employee_code and full_name columns")
    async def voter_import(
        self, interaction: discord.Interaction, file: discord.Attachment
    ) -> None:
        try:
            rows = parse_voters_csv(await file.read())
            with self.bot.db.begin() as session:
                report = import_voters(session, rows)
        except (Error, ValueError, UnicodeDecodeError) as e:
            await self._reply(interaction, f"❌ {e!s}")
            return

        message = (
            f"✅ Imported **{report.inserted}** voter(s), "
            f"skipped {report.skipped} incomplete row(s)."
        )
        if report.errors:
            shown = "\n".join(report.errors[:MAX_IMPORT_ERRORS_SHOWN])
            message += f"\n⚠️ {len(report.errors)} row(s) rejected:\n```\n{shown}\n```"
        await self._reply(interaction, message)


async def setup(bot: ITAwardsBot) -> None:
    """Load the Admin cog."""
    await bot.add_cog(Admin(bot))
