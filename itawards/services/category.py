from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from itawards.config import LOGGER
from itawards.constants import MAX_CATEGORY_NAME_LENGTH
from itawards.errors import NotFoundError
from itawards.models.category import Category
from itawards.models.category_eligibility import CategoryEligibility
from itawards.models.nomination import Nomination


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("Category name is required")
    if len(name) > MAX_CATEGORY_NAME_LENGTH:
        raise ValueError(
            f"Category name is too long. Please keep it under "
            f"{MAX_CATEGORY_NAME_LENGTH} characters."
        )
    return name


def create_category(
    session: Session,
    name: str,
    description: str | None = None,
    emoji: str | None = None,
) -> Category:
    category = Category(
        name=_clean_name(name),
        description=description or None,
        emoji=emoji or None,
    )
    session.add(category)
    session.flush()
    LOGGER.info(f"Created category {category.id} ({category.name})")
    return category


def update_category(
    session: Session,
    category_id: int,
    name: str | None = None,
    description: str | None = None,
    emoji: str | None = None,
) -> Category:
    category = session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)

    if name is not None:
        category.name = _clean_name(name)
    if description is not None:
        category.description = description or None
    if emoji is not None:
        category.emoji = emoji or None
    return category


def get_category(session: Session, category_id: int) -> Category | None:
    return session.get(Category, category_id)


def get_category_by_name(session: Session, name: str) -> Category | None:
    """Look up a category by name, ignoring case and surrounding spaces."""
    query = select(Category).where(func.lower(Category.name) == name.strip().lower())
    return session.execute(query).scalars().first()


def get_all_categories(session: Session) -> list[Category]:
    """Get all categories ordered by name."""
    try:
        query = select(Category).order_by(Category.name)
        return list(session.execute(query).scalars().all())
    except Exception as e:
        LOGGER.error(f"Error retrieving categories: {e!s}")
        return []


def delete_category(session: Session, category_id: int) -> int:
    """
    Delete a category along with its nominations and eligibility links.

    Returns
    -------
    int
        The number of nominations removed with the category
    """
    category = session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)

    removed = session.execute(
        delete(Nomination).where(Nomination.category_id == category_id)
    ).rowcount
    session.execute(
        delete(CategoryEligibility).where(CategoryEligibility.category_id == category_id)
    )
    session.delete(category)
    session.flush()

    LOGGER.info(f"Deleted category {category_id} and {removed} nomination(s)")
    return removed
