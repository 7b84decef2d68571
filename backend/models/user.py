"""User model definitions."""

from sqlalchemy import Column, Integer, String
from backend.database import Base

ROLE_SCHOLAR = "scholar"
ROLE_FACULTY = "faculty"
ROLE_ADMIN = "admin"
ROLES = (ROLE_SCHOLAR, ROLE_FACULTY, ROLE_ADMIN)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False, default="")
    hashed_password = Column(String)
    role = Column(String, nullable=False, default=ROLE_SCHOLAR)  # scholar/faculty/admin
