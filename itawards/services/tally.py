"""Vote tallying and ranking.

Everything here is a pure function of its input: nominations are read by the
caller (any object exposing ``voter_id``, ``category_id`` and
``collaborator_id`` works) and the ranked results are returned.

Equal vote counts are ordered by ascending collaborator id so that rankings
are reproducible regardless of the order rows come back from the store.
"""

from collections import Counter, defaultdict
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from typing import Protocol

from table2ascii import Alignment, PresetStyle, table2ascii

from itawards.constants import PODIUM_SIZE, TOP_NOMINEES_SIZE

MAX_STANDINGS_NAME_LENGTH = 40


class NominationLike(Protocol):
    voter_id: int
    category_id: int
    collaborator_id: int


class CategoryLike(Protocol):
    id: int


@dataclass(frozen=True)
class TallyEntry:
    collaborator_id: int
    count: int


@dataclass(frozen=True)
class RankedEntry:
    collaborator_id: int
    count: int
    position: int


@dataclass(frozen=True)
class NomineeTotal:
    collaborator_id: int
    total_votes: int
    category_ids: list[int]


@dataclass
class VotingStatistics:
    total_nominations: int
    total_voters: int
    voters_who_voted: int
    participation_rate: float
    votes_by_category: dict[int, int] = field(default_factory=dict)
    top_nominees: list[NomineeTotal] = field(default_factory=list)


def _rank_key(entry: TallyEntry) -> tuple[int, int]:
    return (-entry.count, entry.collaborator_id)


def tally(
    nominations: Iterable[NominationLike],
    category_ids: Collection[int] | None = None,
) -> dict[int, list[TallyEntry]]:
    """
    Count votes per collaborator within each category.

    Parameters
    ----------
    nominations: Iterable[NominationLike]
        Nomination rows, in any order. Each row is one vote.
    category_ids: Collection[int] | None
        Known category ids. When given, rows pointing at any other category
        are left out of the result.

    Returns
    -------
    dict[int, list[TallyEntry]]
        Category id -> entries sorted by count descending, then collaborator
        id ascending. Collaborators without votes are not listed.
    """
    counters: dict[int, Counter[int]] = defaultdict(Counter)
    for nomination in nominations:
        if category_ids is not None and nomination.category_id not in category_ids:
            continue
        counters[nomination.category_id][nomination.collaborator_id] += 1

    return {
        category_id: sorted(
            (
                TallyEntry(collaborator_id=collaborator_id, count=count)
                for collaborator_id, count in counter.items()
            ),
            key=_rank_key,
        )
        for category_id, counter in counters.items()
    }


def top_n(ranked: list[TallyEntry], n: int) -> list[RankedEntry]:
    """Return the first ``n`` entries with their 1-based position.

    The list is shorter than ``n`` when fewer collaborators received votes.
    """
    if n <= 0:
        return []
    return [
        RankedEntry(
            collaborator_id=entry.collaborator_id,
            count=entry.count,
            position=position,
        )
        for position, entry in enumerate(ranked[:n], start=1)
    ]


def podium(ranked: list[TallyEntry]) -> list[RankedEntry]:
    return top_n(ranked, PODIUM_SIZE)


def winner_at(ranked: list[TallyEntry], position: int) -> RankedEntry | None:
    """Return the candidate holding ``position`` or None if nobody holds it yet."""
    if position < 1:
        return None
    for entry in top_n(ranked, position):
        if entry.position == position:
            return entry
    return None


def _fit_name(name: str) -> str:
    if len(name) <= MAX_STANDINGS_NAME_LENGTH:
        return name
    return name[: MAX_STANDINGS_NAME_LENGTH - 1] + "…"


def format_standings_output(
    ranked: list[TallyEntry], names: dict[int, str], limit: int | None = None
) -> str:
    """Render the ranking of a category as a borderless text table.

    Only the first ``limit`` places are listed when it is given. Names longer
    than ``MAX_STANDINGS_NAME_LENGTH`` are cut short.
    """
    body = [
        [entry.position, _fit_name(names.get(entry.collaborator_id, "?")), entry.count]
        for entry in top_n(ranked, len(ranked) if limit is None else limit)
    ]

    output = table2ascii(
        header=["#", "Collaborator", "Votes"],
        body=body,
        # None lets table2ascii size the name column to its content
        column_widths=[5, None, 8],
        style=PresetStyle.borderless,
        alignments=[Alignment.LEFT, Alignment.LEFT, Alignment.RIGHT],
    )

    return output


def voting_statistics(
    nominations: Iterable[NominationLike],
    total_voters: int,
    categories: Iterable[CategoryLike],
) -> VotingStatistics:
    """Aggregate participation and vote totals for the admin dashboard."""
    rows = list(nominations)
    voters_who_voted = len({row.voter_id for row in rows})
    participation_rate = (
        round(voters_who_voted / total_voters * 100, 1) if total_voters > 0 else 0.0
    )

    per_category = Counter(row.category_id for row in rows)
    votes_by_category = {category.id: per_category[category.id] for category in categories}

    totals: Counter[int] = Counter()
    nominee_categories: dict[int, list[int]] = defaultdict(list)
    for row in rows:
        totals[row.collaborator_id] += 1
        if row.category_id not in nominee_categories[row.collaborator_id]:
            nominee_categories[row.collaborator_id].append(row.category_id)

    top_nominees = [
        NomineeTotal(
            collaborator_id=collaborator_id,
            total_votes=total,
            category_ids=nominee_categories[collaborator_id],
        )
        for collaborator_id, total in sorted(
            totals.items(), key=lambda item: (-item[1], item[0])
        )[:TOP_NOMINEES_SIZE]
    ]

    return VotingStatistics(
        total_nominations=len(rows),
        total_voters=total_voters,
        voters_who_voted=voters_who_voted,
        participation_rate=participation_rate,
        votes_by_category=votes_by_category,
        top_nominees=top_nominees,
    )
