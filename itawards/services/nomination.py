from sqlalchemy import Insert, delete, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from itawards.config import LOGGER
from itawards.errors import NotEligibleError, NotFoundError, WriteFailedError
from itawards.models.category import Category
from itawards.models.collaborator import Collaborator
from itawards.models.nomination import Nomination
from itawards.models.voter import Voter
from itawards.services.eligibility import is_eligible

# Dialects that can upsert on the (voter_id, category_id) unique constraint
UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
    "mysql": mysql.insert,
    "mariadb": mysql.insert,
}


def upsert_statement(
    dialect: str, voter_id: int, category_id: int, collaborator_id: int
) -> Insert | None:
    """Build a single-statement upsert for ``dialect``, or None if it has none."""
    insert = UPSERT_INSERTS.get(dialect)
    if insert is None:
        return None

    stmt = insert(Nomination).values(
        voter_id=voter_id, category_id=category_id, collaborator_id=collaborator_id
    )
    if insert is mysql.insert:
        return stmt.on_duplicate_key_update(
            collaborator_id=stmt.inserted.collaborator_id
        )
    return stmt.on_conflict_do_update(
        index_elements=[Nomination.voter_id, Nomination.category_id],
        set_={"collaborator_id": stmt.excluded.collaborator_id},
    )


def _upsert(
    session: Session, voter_id: int, category_id: int, collaborator_id: int
) -> None:
    dialect = session.get_bind().dialect.name
    stmt = upsert_statement(dialect, voter_id, category_id, collaborator_id)
    if stmt is not None:
        session.execute(stmt)
        return

    # Not atomic: a concurrent first vote for the same category loses on the
    # unique constraint and surfaces as WriteFailedError
    LOGGER.debug(f"No upsert support for {dialect}, using select then write")
    existing = session.execute(
        select(Nomination).where(
            Nomination.voter_id == voter_id, Nomination.category_id == category_id
        )
    ).scalar_one_or_none()
    if existing:
        existing.collaborator_id = collaborator_id
    else:
        session.add(
            Nomination(
                voter_id=voter_id,
                category_id=category_id,
                collaborator_id=collaborator_id,
            )
        )
    session.flush()


def nominate(
    session: Session, voter_id: int, category_id: int, collaborator_id: int
) -> Nomination:
    """
    Record a voter's pick for a category.

    A voter holds at most one nomination per category: voting again in the
    same category replaces the previous pick instead of adding a second one.

    Args:
        session: The database session
        voter_id: The voter casting the vote
        category_id: The category being voted in
        collaborator_id: The collaborator being nominated

    Returns:
        The voter's nomination for the category after the write

    Raises:
        NotFoundError: If the voter, category or collaborator does not exist
        NotEligibleError: If the collaborator cannot be nominated in the category
        WriteFailedError: If the store rejects the write
    """
    for model, key, entity in (
        (Voter, voter_id, "Voter"),
        (Category, category_id, "Category"),
        (Collaborator, collaborator_id, "Collaborator"),
    ):
        if session.get(model, key) is None:
            raise NotFoundError(entity, key)

    if not is_eligible(session, category_id, collaborator_id):
        raise NotEligibleError(category_id, collaborator_id)

    try:
        _upsert(session, voter_id, category_id, collaborator_id)
        nomination = session.execute(
            select(Nomination)
            .where(
                Nomination.voter_id == voter_id, Nomination.category_id == category_id
            )
            .execution_options(populate_existing=True)
        ).scalar_one()
    except SQLAlchemyError as e:
        LOGGER.error(
            f"Error saving nomination for voter {voter_id} "
            f"in category {category_id}: {e!s}"
        )
        raise WriteFailedError("record your vote") from e

    LOGGER.info(
        f"Voter {voter_id} nominated collaborator {collaborator_id} "
        f"in category {category_id}"
    )
    return nomination


def clear_nomination(session: Session, voter_id: int, category_id: int) -> bool:
    """Withdraw a voter's pick for a category.

    Returns
    -------
    bool
        True if a nomination was removed, False if there was none
    """
    try:
        stmt = delete(Nomination).where(
            Nomination.voter_id == voter_id, Nomination.category_id == category_id
        )
        result = session.execute(stmt)
        return result.rowcount > 0
    except SQLAlchemyError as e:
        LOGGER.error(
            f"Error clearing nomination for voter {voter_id} "
            f"in category {category_id}: {e!s}"
        )
        raise WriteFailedError("withdraw your vote") from e


def get_voter_nominations(session: Session, voter_id: int) -> dict[int, int]:
    """Get a voter's current picks.

    Parameters
    ----------
    session: Session
        The database session
    voter_id: int
        The voter to get nominations for

    Returns
    -------
    dict[int, int]
        Category id -> nominated collaborator id
    """
    try:
        query = select(Nomination.category_id, Nomination.collaborator_id).where(
            Nomination.voter_id == voter_id
        )
        return {row.category_id: row.collaborator_id for row in session.execute(query)}
    except Exception as e:
        LOGGER.error(f"Error retrieving nominations for voter {voter_id}: {e!s}")
        return {}


def get_all_nominations(
    session: Session, category_id: int | None = None
) -> list[Nomination]:
    """Get all nominations, optionally only those of one category."""
    try:
        query = select(Nomination)
        if category_id is not None:
            query = query.where(Nomination.category_id == category_id)
        result = session.execute(query).scalars().all()
        return list(result)
    except Exception as e:
        LOGGER.error(f"Error retrieving nominations: {e!s}")
        return []


def clear_all_nominations(session: Session) -> int:
    """Clear all nominations from the database.

    Returns
    -------
    int
        The number of nominations cleared

    Raises
    ------
    WriteFailedError
        If the store rejects the delete
    """
    try:
        stmt = delete(Nomination)
        result = session.execute(stmt)
        return result.rowcount
    except SQLAlchemyError as e:
        LOGGER.error(f"Error clearing nominations: {e!s}")
        raise WriteFailedError("reset the votes") from e
