from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from itawards.constants import MAX_EMPLOYEE_CODE_LENGTH, MAX_FULL_NAME_LENGTH

from .base import Base


class Voter(Base):
    __tablename__ = "voters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Always stored upper-cased so the unique constraint is case-insensitive
    employee_code: Mapped[str] = mapped_column(
        String(MAX_EMPLOYEE_CODE_LENGTH), nullable=False, unique=True
    )
    full_name: Mapped[str] = mapped_column(String(MAX_FULL_NAME_LENGTH), nullable=False)

    @validates("employee_code")
    def _normalize_employee_code(self, key: str, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else None
