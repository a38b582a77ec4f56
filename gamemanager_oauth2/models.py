"""Database models."""

from sqlalchemy import Column, DateTime, Integer, String, Text, \
    UniqueConstraint, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

EMAIL_CONSTRAINT = 'uq_users_email'
GOOGLE_ID_CONSTRAINT = 'uq_users_google_id'


class DBUser(Base):  # type: ignore
    """
    Users who have logged in through the identity provider.

    +------------+--------------+------+-----+-------------------+----------------+
    | Field      | Type         | Null | Key | Default           | Extra          |
    +------------+--------------+------+-----+-------------------+----------------+
    | id         | int          | NO   | PRI | NULL              | auto_increment |
    | email      | varchar(255) | NO   | UNI | NULL              |                |
    | google_id  | varchar(255) | NO   | UNI | NULL              |                |
    | name       | varchar(255) | YES  |     | NULL              |                |
    | picture    | text         | YES  |     | NULL              |                |
    | created_at | timestamp    | NO   |     | CURRENT_TIMESTAMP |                |
    +------------+--------------+------+-----+-------------------+----------------+
    """

    __tablename__ = 'users'
    __table_args__ = (
        UniqueConstraint('email', name=EMAIL_CONSTRAINT),
        UniqueConstraint('google_id', name=GOOGLE_ID_CONSTRAINT),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False)
    google_id = Column(String(255), nullable=False)
    name = Column(String(255))
    picture = Column(Text)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
