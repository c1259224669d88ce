"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite schema per test
- Factories for users, roles, teams, records and stream entries
- JWT token minting for authenticated tests
- HTTPX AsyncClient with proper headers
"""
import os
import uuid
from typing import AsyncGenerator, Generator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

# Tests always run against a private in-memory database
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENV"] = "test"
os.environ["ACL_STRICT_MODE"] = "False"

from app.main import app
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.deps import get_db, COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE
from app.core.security import create_session_token
from app.db.enums import UserType
from app.db.models import (
    Account,
    AclRole,
    Attachment,
    EntityTeam,
    Team,
    TeamUser,
    User,
    UserRole,
)
from app.services import acl_service, note_service


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates a database session over a freshly created schema.

    The schema is dropped after each test, so app code can commit freely.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


# =============================================================================
# Factories
# =============================================================================

def make_team(db: Session, name: str = "Team") -> Team:
    team = Team(id=uuid.uuid4(), name=name)
    db.add(team)
    db.flush()
    return team


def make_role(
    db: Session,
    data: dict | None = None,
    field_data: dict | None = None,
    permissions: dict | None = None,
    is_portal: bool = False,
) -> AclRole:
    role = AclRole(
        id=uuid.uuid4(),
        name=f"role-{uuid.uuid4().hex[:8]}",
        is_portal=is_portal,
        data=data or {},
        field_data=field_data or {},
        permissions=permissions or {},
    )
    db.add(role)
    db.flush()
    return role


def make_user(
    db: Session,
    user_type: UserType = UserType.REGULAR,
    teams: tuple[Team, ...] = (),
    roles: tuple[AclRole, ...] = (),
    name: str | None = None,
) -> User:
    user_name = name or f"user-{uuid.uuid4().hex[:8]}"
    user = User(
        id=uuid.uuid4(),
        user_name=user_name,
        display_name=user_name.title(),
        user_type=user_type.value,
    )
    db.add(user)
    db.flush()
    for team in teams:
        db.add(TeamUser(team_id=team.id, user_id=user.id))
    for role in roles:
        db.add(UserRole(user_id=user.id, role_id=role.id))
    db.flush()
    return user


def make_viewer(db: Session, user: User):
    return acl_service.build_viewer(db, user)


def make_account(
    db: Session,
    name: str = "Acme",
    assigned_user: User | None = None,
    teams: tuple[Team, ...] = (),
) -> Account:
    account = Account(
        id=uuid.uuid4(),
        name=name,
        assigned_user_id=assigned_user.id if assigned_user else None,
    )
    db.add(account)
    db.flush()
    share_with_teams(db, account, teams)
    return account


def share_with_teams(db: Session, record, teams: tuple[Team, ...]) -> None:
    for team in teams:
        db.add(EntityTeam(entity_type=record.entity_type, entity_id=record.id, team_id=team.id))
    db.flush()


def make_note(db: Session, **kwargs):
    kwargs.setdefault("note_type", "Post")
    return note_service.create_note(db, **kwargs)


def make_attachment(db: Session, **kwargs) -> Attachment:
    kwargs.setdefault("name", "file.pdf")
    kwargs.setdefault("type", "application/pdf")
    attachment = Attachment(id=uuid.uuid4(), **kwargs)
    db.add(attachment)
    db.flush()
    return attachment


# =============================================================================
# Common Fixtures
# =============================================================================

@pytest.fixture
def team_a(db: Session) -> Team:
    return make_team(db, "Team A")


@pytest.fixture
def team_b(db: Session) -> Team:
    return make_team(db, "Team B")


@pytest.fixture
def admin_user(db: Session) -> User:
    return make_user(db, UserType.ADMIN, name="admin")


@pytest.fixture
def regular_user(db: Session, team_a: Team) -> User:
    """Regular user in Team A with no roles (default level applies)."""
    return make_user(db, teams=(team_a,), name="regular")


@pytest.fixture
def portal_user(db: Session) -> User:
    role = make_role(db, data={"Account": {"read": "all", "stream": "all"}}, is_portal=True)
    return make_user(db, UserType.PORTAL, roles=(role,), name="portal")


# =============================================================================
# Auth / Client Fixtures
# =============================================================================

def session_cookie(user: User) -> str:
    """Create JWT session token for a user."""
    return create_session_token(
        user_id=user.id,
        user_type=user.user_type,
        token_version=user.token_version,
    )


def login(client: AsyncClient, user: User) -> AsyncClient:
    client.cookies.set(COOKIE_NAME, session_cookie(user))
    return client


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient (with CSRF header) for testing endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={CSRF_HEADER: CSRF_HEADER_VALUE},
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    client: AsyncClient,
    admin_user: User,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient authenticated as an admin."""
    yield login(client, admin_user)
