import os
from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.database import Base  # noqa: E402
from backend.models import appointment, availability, slot, slot_request  # noqa: E402,F401
from backend.models.user import ROLE_ADMIN, ROLE_FACULTY, ROLE_SCHOLAR, User  # noqa: E402


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(f'sqlite:///{tmp_path / "scheduling.db"}', connect_args={'check_same_thread': False})
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _add_user(db, email: str, name: str, role: str) -> User:
    user = User(email=email, name=name, hashed_password='', role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def faculty(db) -> User:
    return _add_user(db, 'faculty@example.edu', 'Dr. Faculty', ROLE_FACULTY)


@pytest.fixture
def other_faculty(db) -> User:
    return _add_user(db, 'second.faculty@example.edu', 'Dr. Second', ROLE_FACULTY)


@pytest.fixture
def scholar(db) -> User:
    return _add_user(db, 'scholar@example.edu', 'Sam Scholar', ROLE_SCHOLAR)


@pytest.fixture
def other_scholar(db) -> User:
    return _add_user(db, 'rival@example.edu', 'Riley Rival', ROLE_SCHOLAR)


@pytest.fixture
def admin(db) -> User:
    return _add_user(db, 'admin@example.edu', 'Ada Admin', ROLE_ADMIN)


@pytest.fixture
def future_day() -> date:
    return date.today() + timedelta(days=7)
