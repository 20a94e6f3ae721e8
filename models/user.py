from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, String, func

from models.base import Base


class User(Base):
    # Accounts are managed by the auth service; carts and orders only reference them
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, unique=True)
    registered_at = Column(DateTime, default=func.now())


class UserDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    email: str | None = None
    registered_at: datetime | None = None
