from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from itawards.config import LOGGER
from itawards.errors import NotFoundError, WriteFailedError
from itawards.models.nomination import Nomination
from itawards.models.voter import Voter


@dataclass
class ImportReport:
    inserted: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def normalize_employee_code(employee_code: str) -> str:
    return employee_code.strip().upper()


def authenticate(session: Session, employee_code: str) -> Voter | None:
    """Find the voter owning an employee code, ignoring case."""
    code = normalize_employee_code(employee_code)
    if not code:
        return None
    query = select(Voter).where(func.upper(Voter.employee_code) == code)
    return session.execute(query).scalar_one_or_none()


def create_voter(session: Session, employee_code: str, full_name: str) -> Voter:
    code = normalize_employee_code(employee_code)
    full_name = full_name.strip()
    if not code or not full_name:
        raise ValueError("Employee code and full name are required")
    if authenticate(session, code) is not None:
        raise ValueError(f"Employee code {code} is already registered")

    voter = Voter(employee_code=code, full_name=full_name)
    session.add(voter)
    session.flush()
    LOGGER.info(f"Created voter {voter.id} ({code})")
    return voter


def update_voter(
    session: Session,
    voter_id: int,
    employee_code: str | None = None,
    full_name: str | None = None,
) -> Voter:
    voter = session.get(Voter, voter_id)
    if voter is None:
        raise NotFoundError("Voter", voter_id)

    if employee_code is not None:
        code = normalize_employee_code(employee_code)
        if not code:
            raise ValueError("Employee code is required")
        owner = authenticate(session, code)
        if owner is not None and owner.id != voter_id:
            raise ValueError(f"Employee code {code} is already registered")
        voter.employee_code = code
    if full_name is not None:
        if not full_name.strip():
            raise ValueError("Full name is required")
        voter.full_name = full_name.strip()
    return voter


def get_all_voters(session: Session) -> list[Voter]:
    try:
        query = select(Voter).order_by(Voter.full_name)
        return list(session.execute(query).scalars().all())
    except Exception as e:
        LOGGER.error(f"Error retrieving voters: {e!s}")
        return []


def count_voters(session: Session) -> int:
    return session.execute(select(func.count(Voter.id))).scalar_one()


def delete_voter(session: Session, voter_id: int) -> int:
    """Delete a voter and their nominations. Returns the nominations removed."""
    voter = session.get(Voter, voter_id)
    if voter is None:
        raise NotFoundError("Voter", voter_id)

    removed = session.execute(
        delete(Nomination).where(Nomination.voter_id == voter_id)
    ).rowcount
    session.delete(voter)
    session.flush()
    LOGGER.info(f"Deleted voter {voter_id} and {removed} nomination(s)")
    return removed


def import_voters(
    session: Session, rows: Iterable[Mapping[str, str | None]]
) -> ImportReport:
    """
    Bulk-create voters from ``employee_code``/``full_name`` rows.

    Rows missing either value are skipped. Codes that are already registered
    or repeated in the batch are reported and left out; every other row is
    inserted.
    """
    report = ImportReport()
    existing = {
        code for code in session.execute(select(Voter.employee_code)).scalars().all()
    }

    for row in rows:
        code = normalize_employee_code(str(row.get("employee_code") or ""))
        full_name = str(row.get("full_name") or "").strip()

        if not code or not full_name:
            report.skipped += 1
            continue
        if code in existing:
            report.errors.append(f"Duplicate code: {code} - {full_name}")
            continue

        session.add(Voter(employee_code=code, full_name=full_name))
        existing.add(code)
        report.inserted += 1

    try:
        session.flush()
    except SQLAlchemyError as e:
        LOGGER.error(f"Error importing voters: {e!s}")
        raise WriteFailedError("import the voters") from e

    LOGGER.info(
        f"Imported {report.inserted} voter(s), skipped {report.skipped}, "
        f"{len(report.errors)} error(s)"
    )
    return report
