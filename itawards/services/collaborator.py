from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from itawards.config import LOGGER
from itawards.constants import MAX_FULL_NAME_LENGTH
from itawards.errors import NotFoundError
from itawards.models.category_eligibility import CategoryEligibility
from itawards.models.collaborator import Collaborator
from itawards.models.nomination import Nomination


def _required(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field} is required")
    return value


def create_collaborator(
    session: Session,
    full_name: str,
    avatar_url: str,
    role: str | None = None,
    lottery_name: str | None = None,
    lottery_shout: str | None = None,
) -> Collaborator:
    full_name = _required(full_name, "Full name")
    if len(full_name) > MAX_FULL_NAME_LENGTH:
        raise ValueError("Full name is too long")

    collaborator = Collaborator(
        full_name=full_name,
        avatar_url=_required(avatar_url, "Avatar URL"),
        role=role or None,
        lottery_name=lottery_name or None,
        lottery_shout=lottery_shout or None,
    )
    session.add(collaborator)
    session.flush()
    LOGGER.info(f"Created collaborator {collaborator.id} ({collaborator.full_name})")
    return collaborator


def update_collaborator(
    session: Session, collaborator_id: int, **fields: str | None
) -> Collaborator:
    """Update the given fields of a collaborator.

    Empty strings clear optional fields; required fields cannot be cleared.
    """
    collaborator = session.get(Collaborator, collaborator_id)
    if collaborator is None:
        raise NotFoundError("Collaborator", collaborator_id)

    for field, value in fields.items():
        if value is None:
            continue
        if field == "full_name":
            full_name = _required(value, "Full name")
            if len(full_name) > MAX_FULL_NAME_LENGTH:
                raise ValueError("Full name is too long")
            collaborator.full_name = full_name
        elif field == "avatar_url":
            collaborator.avatar_url = _required(value, "Avatar URL")
        elif field in ("role", "lottery_name", "lottery_shout"):
            setattr(collaborator, field, value or None)
        else:
            raise ValueError(f"Unknown collaborator field: {field}")
    return collaborator


def get_collaborator(session: Session, collaborator_id: int) -> Collaborator | None:
    return session.get(Collaborator, collaborator_id)


def get_collaborator_by_name(session: Session, full_name: str) -> Collaborator | None:
    query = select(Collaborator).where(
        func.lower(Collaborator.full_name) == full_name.strip().lower()
    )
    return session.execute(query).scalars().first()


def get_collaborators(
    session: Session, collaborator_ids: list[int] | None = None
) -> dict[int, Collaborator]:
    """Get collaborators keyed by id, all of them or only the given ids."""
    try:
        query = select(Collaborator)
        if collaborator_ids is not None:
            query = query.where(Collaborator.id.in_(collaborator_ids))
        return {c.id: c for c in session.execute(query).scalars().all()}
    except Exception as e:
        LOGGER.error(f"Error retrieving collaborators: {e!s}")
        return {}


def get_lottery_roster(session: Session) -> list[Collaborator]:
    """Collaborators taking part in the lottery, ordered by full name."""
    query = (
        select(Collaborator)
        .where(Collaborator.lottery_name.is_not(None))
        .order_by(Collaborator.full_name)
    )
    return list(session.execute(query).scalars().all())


def delete_collaborator(session: Session, collaborator_id: int) -> int:
    """Delete a collaborator with its nominations and eligibility links.

    Returns the number of nominations removed.
    """
    collaborator = session.get(Collaborator, collaborator_id)
    if collaborator is None:
        raise NotFoundError("Collaborator", collaborator_id)

    removed = session.execute(
        delete(Nomination).where(Nomination.collaborator_id == collaborator_id)
    ).rowcount
    session.execute(
        delete(CategoryEligibility).where(
            CategoryEligibility.collaborator_id == collaborator_id
        )
    )
    session.delete(collaborator)
    session.flush()

    LOGGER.info(f"Deleted collaborator {collaborator_id} and {removed} nomination(s)")
    return removed
