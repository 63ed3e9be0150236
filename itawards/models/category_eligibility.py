from sqlalchemy import ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class CategoryEligibility(Base):
    """Restricts a collaborator to the categories it is linked to."""

    __tablename__ = "category_collaborators"
    __table_args__ = (
        UniqueConstraint(
            "category_id", "collaborator_id", name="uq_category_collaborator"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False
    )
    collaborator_id: Mapped[int] = mapped_column(
        ForeignKey("collaborators.id"), nullable=False
    )
