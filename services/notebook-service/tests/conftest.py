"""
Test configuration and fixtures
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

# Add the service directory to sys.path so 'eln' can be imported
service_dir = Path(__file__).parent.parent
sys.path.insert(0, str(service_dir))

# Set test environment variables BEFORE importing eln modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only-32chars"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["LOG_LEVEL"] = "WARNING"

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from eln.app import app  # noqa: E402
from eln.database import get_db  # noqa: E402
from eln.entities import Experiments, Items  # noqa: E402
from eln.models import (  # noqa: E402
    Base,
    Experiment,
    Item,
    ItemsType,
    Status,
    Team,
    User,
    UsersTeams,
)
from eln.services.users import load_user_context  # noqa: E402

# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# userid -> (firstname, lastname, team, flags)
USERS = {
    1: ("Alice", "Admin", 1, {"is_admin": True}),
    2: ("Bob", "Brown", 1, {}),
    3: ("Carol", "Clark", 1, {}),
    4: ("Dave", "Dunn", 2, {}),
    5: ("Anon", "Ymous", 1, {"is_anon": True}),
    6: ("Frank", "Fresh", 1, {"validated": False}),
    7: ("Lena", "Locker", 1, {"can_lock": True}),
}


def seed(db):
    """Two teams, their users, statuses and item types."""
    db.add_all([Team(id=1, name="Alpha", common_template="<p>Common</p>"), Team(id=2, name="Beta")])
    db.flush()
    for userid, (firstname, lastname, team, flags) in USERS.items():
        db.add(
            User(
                userid=userid,
                firstname=firstname,
                lastname=lastname,
                email=f"{firstname.lower()}@example.org",
                team=team,
                **flags,
            )
        )
    db.flush()
    for userid, (_, _, team, _) in USERS.items():
        db.add(UsersTeams(users_id=userid, teams_id=team))
    db.add_all(
        [
            Status(id=1, team=1, name="Running", color="29aeb9", is_default=True, ordering=1),
            Status(id=2, team=1, name="Success", color="54aa08", ordering=2),
            Status(id=3, team=2, name="Running", color="29aeb9", is_default=True),
            ItemsType(id=1, team=1, name="Antibody", color="32a100", template="<p>Antibody</p>"),
            ItemsType(id=2, team=1, name="Microscope", color="0064ff", bookable=True),
            ItemsType(id=3, team=2, name="Sample", color="ff0000"),
        ]
    )
    db.commit()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh, seeded database session for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    seed(db)
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db_session):
    """Build the identity of a seeded user."""

    def _make_user(userid):
        return load_user_context(db_session, userid)

    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user(1)


@pytest.fixture
def bob(make_user):
    return make_user(2)


@pytest.fixture
def carol(make_user):
    return make_user(3)


@pytest.fixture
def dave(make_user):
    return make_user(4)


@pytest.fixture
def anon(make_user):
    return make_user(5)


@pytest.fixture
def lena(make_user):
    return make_user(7)


def _factory(db, entity_class, model):
    def _create(user, tpl=None, **columns):
        entity_id = entity_class(db, user).create(tpl)
        if columns:
            row = db.get(model, entity_id)
            for column, value in columns.items():
                setattr(row, column, value)
            db.commit()
        return entity_id

    return _create


@pytest.fixture
def new_experiment(db_session):
    """Create an experiment, then override some of its columns."""
    return _factory(db_session, Experiments, Experiment)


@pytest.fixture
def new_item(db_session):
    """Create an item of type 1 unless another type is given."""
    create = _factory(db_session, Items, Item)

    def _create(user, tpl=1, **columns):
        return create(user, tpl, **columns)

    return _create


def make_token(userid, expires_in=3600, **claims):
    """Mint a bearer token the way the auth service does."""
    payload = {
        "sub": str(userid),
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        **claims,
    }
    return jwt.encode(payload, os.environ["JWT_SECRET_KEY"], algorithm="HS256")


@pytest.fixture
def auth_headers():
    def _auth_headers(userid, **claims):
        return {"Authorization": f"Bearer {make_token(userid, **claims)}"}

    return _auth_headers


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Mock init_db to prevent creating tables on the application engine
    with patch("eln.app.init_db"):
        app.dependency_overrides[get_db] = override_get_db
        with TestClient(app) as test_client:
            yield test_client
        app.dependency_overrides.clear()
