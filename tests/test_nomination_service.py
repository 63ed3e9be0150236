from typing import Any

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from itawards.errors import NotEligibleError, NotFoundError, WriteFailedError
from itawards.models.category_eligibility import CategoryEligibility
from itawards.models.nomination import Nomination
from itawards.services.nomination import (
    UPSERT_INSERTS,
    clear_all_nominations,
    clear_nomination,
    get_all_nominations,
    get_voter_nominations,
    nominate,
    upsert_statement,
)
from itawards.services.tally import tally


def nominations_for(session: Session, voter_id: int, category_id: int) -> list[Nomination]:
    query = select(Nomination).where(
        Nomination.voter_id == voter_id, Nomination.category_id == category_id
    )
    return list(session.execute(query).scalars().all())


def test_nominate_first_vote(db_session: Session, awards_data: dict[str, Any]) -> None:
    """Test that a first vote creates a nomination."""
    ana, tech, alice = awards_data["ana"], awards_data["tech"], awards_data["alice"]

    nomination = nominate(db_session, ana.id, tech.id, alice.id)
    db_session.commit()

    assert nomination.voter_id == ana.id
    assert nomination.category_id == tech.id
    assert nomination.collaborator_id == alice.id
    assert len(nominations_for(db_session, ana.id, tech.id)) == 1


def test_nominate_again_replaces_the_pick(
    db_session: Session, awards_data: dict[str, Any]
) -> None:
    """Voting twice in a category leaves a single nomination with the last pick."""
    ana, tech = awards_data["ana"], awards_data["tech"]
    alice, bob = awards_data["alice"], awards_data["bob"]

    nominate(db_session, ana.id, tech.id, alice.id)
    db_session.commit()
    nominate(db_session, ana.id, tech.id, bob.id)
    db_session.commit()

    rows = nominations_for(db_session, ana.id, tech.id)
    assert len(rows) == 1
    assert rows[0].collaborator_id == bob.id

    ranked = tally(get_all_nominations(db_session))[tech.id]
    assert [(entry.collaborator_id, entry.count) for entry in ranked] == [(bob.id, 1)]


def test_nominate_same_pick_twice(db_session: Session, awards_data: dict[str, Any]) -> None:
    ana, tech, alice = awards_data["ana"], awards_data["tech"], awards_data["alice"]

    nominate(db_session, ana.id, tech.id, alice.id)
    nominate(db_session, ana.id, tech.id, alice.id)

    assert len(get_all_nominations(db_session)) == 1


def test_nominate_in_several_categories(
    db_session: Session, awards_data: dict[str, Any]
) -> None:
    ana, alice = awards_data["ana"], awards_data["alice"]
    tech, team = awards_data["tech"], awards_data["team"]

    nominate(db_session, ana.id, tech.id, alice.id)
    nominate(db_session, ana.id, team.id, alice.id)

    assert get_voter_nominations(db_session, ana.id) == {
        tech.id: alice.id,
        team.id: alice.id,
    }


def test_nominate_different_voters(
    db_session: Session, awards_data: dict[str, Any]
) -> None:
    ana, ben, tech = awards_data["ana"], awards_data["ben"], awards_data["tech"]
    alice, bob = awards_data["alice"], awards_data["bob"]

    nominate(db_session, ana.id, tech.id, alice.id)
    nominate(db_session, ben.id, tech.id, bob.id)

    assert len(get_all_nominations(db_session, tech.id)) == 2


@pytest.mark.parametrize(
    "missing,entity",
    [
        pytest.param("voter", "Voter", id="unknown_voter"),
        pytest.param("category", "Category", id="unknown_category"),
        pytest.param("collaborator", "Collaborator", id="unknown_collaborator"),
    ],
)
def test_nominate_unknown_ids(
    db_session: Session, awards_data: dict[str, Any], missing: str, entity: str
) -> None:
    ids = {
        "voter": awards_data["ana"].id,
        "category": awards_data["tech"].id,
        "collaborator": awards_data["alice"].id,
    }
    ids[missing] = 9999

    with pytest.raises(NotFoundError) as excinfo:
        nominate(db_session, ids["voter"], ids["category"], ids["collaborator"])

    assert excinfo.value.entity == entity
    assert get_all_nominations(db_session) == []


def test_nominate_not_eligible(db_session: Session, awards_data: dict[str, Any]) -> None:
    """A collaborator linked to another category cannot be nominated here."""
    ana, tech, team = awards_data["ana"], awards_data["tech"], awards_data["team"]
    bob = awards_data["bob"]
    db_session.add(CategoryEligibility(category_id=team.id, collaborator_id=bob.id))
    db_session.flush()

    with pytest.raises(NotEligibleError):
        nominate(db_session, ana.id, tech.id, bob.id)

    nomination = nominate(db_session, ana.id, team.id, bob.id)
    assert nomination.collaborator_id == bob.id


def test_nominate_write_failure_keeps_previous_vote(
    db_session: Session, awards_data: dict[str, Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    """A failed write raises WriteFailedError and the earlier pick stays."""
    ana, tech = awards_data["ana"], awards_data["tech"]
    alice, bob = awards_data["alice"], awards_data["bob"]
    nominate(db_session, ana.id, tech.id, alice.id)
    db_session.commit()

    def mock_upsert(*args: Any, **kwargs: Any) -> None:
        raise SQLAlchemyError("Database error")

    monkeypatch.setattr("itawards.services.nomination._upsert", mock_upsert)

    with pytest.raises(WriteFailedError) as excinfo:
        nominate(db_session, ana.id, tech.id, bob.id)

    assert isinstance(excinfo.value.__cause__, SQLAlchemyError)
    assert get_voter_nominations(db_session, ana.id) == {tech.id: alice.id}


@pytest.mark.parametrize(
    "dialect,module,clause",
    [
        ("postgresql", postgresql, "ON CONFLICT (voter_id, category_id) DO UPDATE"),
        ("sqlite", sqlite, "ON CONFLICT (voter_id, category_id) DO UPDATE"),
        ("mysql", mysql, "ON DUPLICATE KEY UPDATE"),
        ("mariadb", mysql, "ON DUPLICATE KEY UPDATE"),
    ],
)
def test_upsert_statement(dialect: str, module: Any, clause: str) -> None:
    stmt = upsert_statement(dialect, voter_id=1, category_id=2, collaborator_id=3)

    assert stmt is not None
    assert clause in str(stmt.compile(dialect=module.dialect()))


def test_upsert_statement_unsupported_dialect() -> None:
    assert upsert_statement("mssql", voter_id=1, category_id=2, collaborator_id=3) is None


def test_nominate_without_upsert_support_replaces_pick(
    db_session: Session, awards_data: dict[str, Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    """Dialects without an upsert fall back to select then write."""
    monkeypatch.delitem(UPSERT_INSERTS, "sqlite")
    ana, tech = awards_data["ana"], awards_data["tech"]
    alice, bob = awards_data["alice"], awards_data["bob"]

    first = nominate(db_session, ana.id, tech.id, alice.id)
    second = nominate(db_session, ana.id, tech.id, bob.id)

    assert first.id == second.id
    assert [n.collaborator_id for n in nominations_for(db_session, ana.id, tech.id)] == [
        bob.id
    ]


def test_clear_nomination(db_session: Session, awards_data: dict[str, Any]) -> None:
    ana, tech, alice = awards_data["ana"], awards_data["tech"], awards_data["alice"]
    nominate(db_session, ana.id, tech.id, alice.id)

    assert clear_nomination(db_session, ana.id, tech.id) is True
    assert nominations_for(db_session, ana.id, tech.id) == []


def test_clear_nomination_twice_is_a_no_op(
    db_session: Session, awards_data: dict[str, Any]
) -> None:
    ana, ben, tech = awards_data["ana"], awards_data["ben"], awards_data["tech"]
    alice = awards_data["alice"]
    nominate(db_session, ana.id, tech.id, alice.id)
    nominate(db_session, ben.id, tech.id, alice.id)

    assert clear_nomination(db_session, ana.id, tech.id) is True
    assert clear_nomination(db_session, ana.id, tech.id) is False
    assert len(get_all_nominations(db_session)) == 1


def test_clear_nomination_error_handling(
    db_session: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    def mock_execute(*args: Any, **kwargs: Any) -> None:
        raise SQLAlchemyError("Database error")

    monkeypatch.setattr(db_session, "execute", mock_execute)

    with pytest.raises(WriteFailedError):
        clear_nomination(db_session, voter_id=1, category_id=1)


def test_get_voter_nominations_empty(db_session: Session) -> None:
    assert get_voter_nominations(db_session, voter_id=12345) == {}


def test_get_voter_nominations_error_handling(
    db_session: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    def mock_execute(*args: Any, **kwargs: Any) -> None:
        raise SQLAlchemyError("Database error")

    monkeypatch.setattr(db_session, "execute", mock_execute)

    assert get_voter_nominations(db_session, voter_id=1) == {}  # empty on error


def test_get_all_nominations_error_handling(
    db_session: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    def mock_execute(*args: Any, **kwargs: Any) -> None:
        raise SQLAlchemyError("Database error")

    monkeypatch.setattr(db_session, "execute", mock_execute)

    assert get_all_nominations(db_session) == []


def test_clear_all_nominations(db_session: Session, awards_data: dict[str, Any]) -> None:
    ana, ben, tech = awards_data["ana"], awards_data["ben"], awards_data["tech"]
    alice = awards_data["alice"]
    nominate(db_session, ana.id, tech.id, alice.id)
    nominate(db_session, ben.id, tech.id, alice.id)
    db_session.commit()

    count = clear_all_nominations(db_session)
    db_session.commit()

    assert count == 2
    assert get_all_nominations(db_session) == []


def test_clear_all_nominations_empty(db_session: Session) -> None:
    assert clear_all_nominations(db_session) == 0


def test_clear_all_nominations_error_handling(
    db_session: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    def mock_execute(*args: Any, **kwargs: Any) -> None:
        raise SQLAlchemyError("Database error")

    monkeypatch.setattr(db_session, "execute", mock_execute)

    with pytest.raises(WriteFailedError, match="reset the votes"):
        clear_all_nominations(db_session)
