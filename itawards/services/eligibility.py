from sqlalchemy import delete, exists, select
from sqlalchemy.orm import Session

from itawards.config import LOGGER
from itawards.models.category_eligibility import CategoryEligibility
from itawards.models.collaborator import Collaborator


def is_eligible(session: Session, category_id: int, collaborator_id: int) -> bool:
    """
    Check whether a collaborator may be nominated in a category.

    A collaborator with no eligibility links can be nominated everywhere.
    One with at least one link can only be nominated where it is linked.
    """
    links = (
        session.execute(
            select(CategoryEligibility.category_id).where(
                CategoryEligibility.collaborator_id == collaborator_id
            )
        )
        .scalars()
        .all()
    )
    return not links or category_id in links


def get_eligible_collaborators(session: Session, category_id: int) -> list[Collaborator]:
    """Get the candidates for a category, ordered by full name."""
    try:
        linked_here = select(CategoryEligibility.id).where(
            CategoryEligibility.collaborator_id == Collaborator.id,
            CategoryEligibility.category_id == category_id,
        )
        linked_anywhere = select(CategoryEligibility.id).where(
            CategoryEligibility.collaborator_id == Collaborator.id
        )
        query = (
            select(Collaborator)
            .where(exists(linked_here) | ~exists(linked_anywhere))
            .order_by(Collaborator.full_name)
        )
        return list(session.execute(query).scalars().all())
    except Exception as e:
        LOGGER.error(f"Error retrieving candidates for category {category_id}: {e!s}")
        return []


def get_collaborator_categories(session: Session, collaborator_id: int) -> list[int]:
    query = (
        select(CategoryEligibility.category_id)
        .where(CategoryEligibility.collaborator_id == collaborator_id)
        .order_by(CategoryEligibility.category_id)
    )
    return list(session.execute(query).scalars().all())


def set_collaborator_categories(
    session: Session, collaborator_id: int, category_ids: list[int]
) -> None:
    """Replace a collaborator's eligibility links.

    An empty list makes the collaborator eligible in every category.
    """
    session.execute(
        delete(CategoryEligibility).where(
            CategoryEligibility.collaborator_id == collaborator_id
        )
    )
    session.add_all(
        CategoryEligibility(category_id=category_id, collaborator_id=collaborator_id)
        for category_id in dict.fromkeys(category_ids)
    )
