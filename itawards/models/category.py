from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from itawards.constants import MAX_CATEGORY_NAME_LENGTH

from .base import Base


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(MAX_CATEGORY_NAME_LENGTH), nullable=False, unique=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    emoji: Mapped[str | None] = mapped_column(String(16), nullable=True)

    @property
    def label(self) -> str:
        return f"{self.emoji} {self.name}" if self.emoji else self.name
