# detailing/models/user.py
from sqlalchemy import Column, String, Boolean, DateTime, Integer, BigInteger
from sqlalchemy.sql import func
from detailing.models.base import Base


class User(Base):
    """Client or manager known to the booking backend (registered by the bot)"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    # Chat used to deliver notifications; clients without one are not notified
    telegram_chat_id = Column(BigInteger, nullable=True, unique=True)
    is_manager = Column(Boolean, default=False, nullable=False)

    registration_date = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"
