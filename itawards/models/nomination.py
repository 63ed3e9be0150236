from sqlalchemy import ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Nomination(Base):
    __tablename__ = "nominations"
    # One current pick per voter and category
    __table_args__ = (
        UniqueConstraint("voter_id", "category_id", name="uq_nomination_voter_category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voter_id: Mapped[int] = mapped_column(ForeignKey("voters.id"), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    collaborator_id: Mapped[int] = mapped_column(
        ForeignKey("collaborators.id"), nullable=False
    )
