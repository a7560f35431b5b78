"""SQLAlchemy model for the users table."""

from sqlalchemy import Column, String

from app.infrastructure.database import Base


class UserModel(Base):
    """Database representation of a platform user and its contact data."""

    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True, index=True)
    username = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True)
    contactno = Column(String(32), nullable=True)


__all__ = ["UserModel"]
