import logging
import os
import sys
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio
from sqlalchemy.orm import Session

# Add the project root to the path so we can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Mock environment variables before importing any app modules
os.environ["DB_CONNECTION_STRING"] = "sqlite:///:memory:"
os.environ["BOT_TOKEN"] = "test_token"

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from itawards.models import register_models
from itawards.models.base import Base
from itawards.models.category import Category
from itawards.models.collaborator import Collaborator
from itawards.models.voter import Voter

# Set up logging
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


@pytest.fixture
def engine() -> Engine:
    """Create an in-memory SQLite database for testing."""
    return create_engine("sqlite:///:memory:")


@pytest.fixture
def tables(engine: Engine) -> Generator[None]:
    """Create all tables in the test database."""
    register_models()
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine: Engine, tables: None) -> Generator[Session]:
    """Create a new database session for a test."""
    connection = engine.connect()
    transaction = connection.begin()
    session_factory = sessionmaker(bind=connection)
    session = session_factory()

    yield session

    session.close()
    # Only rollback if the transaction is still active
    if transaction.is_active:
        transaction.rollback()
    connection.close()


@pytest.fixture
def awards_data(db_session: Session) -> dict[str, Any]:
    """Seed two categories, three collaborators and two voters."""
    tech = Category(name="Tech", emoji="💻", description="Best engineer")
    team = Category(name="Team Spirit", emoji="🤝")
    alice = Collaborator(full_name="Alice Smith", avatar_url="https://img/alice.png")
    bob = Collaborator(full_name="Bob Jones", avatar_url="https://img/bob.png")
    carol = Collaborator(
        full_name="Carol White",
        avatar_url="https://img/carol.png",
        lottery_name="Santa Carol",
        lottery_shout="Ho ho ho!",
    )
    ana = Voter(employee_code="e001", full_name="Ana Lopez")
    ben = Voter(employee_code="E002", full_name="Ben Perez")
    db_session.add_all([tech, team, alice, bob, carol, ana, ben])
    db_session.flush()
    return {
        "tech": tech,
        "team": team,
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "ana": ana,
        "ben": ben,
    }


@pytest_asyncio.fixture(scope="function")
async def mock_bot() -> MagicMock:
    """Create a simple mock bot."""
    bot = MagicMock()
    bot.wait_until_ready = AsyncMock()
    return bot


class InteractionMock(MagicMock):
    """Custom mock class for Discord Interaction."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        response = MagicMock()
        response.send_message = AsyncMock()
        self.response = response

        followup = MagicMock()
        followup.send = AsyncMock()
        self.followup = followup

        user = MagicMock(spec=discord.Member)
        user.id = 12345
        user.display_name = "TestUser"
        user.mention = "<@12345>"
        user.roles = []
        self.user = user


@pytest_asyncio.fixture
async def mock_interaction() -> discord.Interaction:
    """Create a mock Discord interaction for testing."""
    return InteractionMock()


@pytest.fixture
def session_factory(engine: Engine, tables: None) -> sessionmaker[Session]:
    """Session factory on the test database, as used by the bot's cogs."""
    return sessionmaker(bind=engine)


@pytest.fixture
def seeded_ids(session_factory: sessionmaker[Session]) -> dict[str, int]:
    """Commit the sample awards data and return the ids of each row."""
    with session_factory.begin() as session:
        rows = {
            "tech": Category(name="Tech", emoji="💻"),
            "team": Category(name="Team Spirit", emoji="🤝"),
            "alice": Collaborator(
                full_name="Alice Smith",
                avatar_url="https://img/alice.png",
                lottery_name="Elf Alice",
            ),
            "bob": Collaborator(
                full_name="Bob Jones",
                avatar_url="https://img/bob.png",
                lottery_name="Rudolph Bob",
                lottery_shout="Jingle!",
            ),
            "ana": Voter(employee_code="E001", full_name="Ana Lopez"),
            "ben": Voter(employee_code="E002", full_name="Ben Perez"),
        }
        session.add_all(rows.values())
        session.flush()
        return {key: row.id for key, row in rows.items()}


@pytest_asyncio.fixture
async def db_bot(mock_bot: MagicMock, session_factory: sessionmaker[Session]) -> MagicMock:
    """Mock bot whose ``db`` is a real session factory."""
    mock_bot.db = session_factory
    return mock_bot
