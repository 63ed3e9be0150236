from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from itawards.constants import MAX_FULL_NAME_LENGTH

from .base import Base


class Collaborator(Base):
    __tablename__ = "collaborators"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(MAX_FULL_NAME_LENGTH), nullable=False)
    avatar_url: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str | None] = mapped_column(String(100), nullable=True)
    # Shown on the lottery screen instead of the full name
    lottery_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    lottery_shout: Mapped[str | None] = mapped_column(Text, nullable=True)
