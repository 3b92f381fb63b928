"""User ORM model. Rows are synchronized from the identity provider."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import BaseModel


class User(BaseModel, Base):
    """User. Table: app_user. id is the identity provider's user id."""

    __tablename__ = "app_user"

    email: Mapped[str] = mapped_column(String, nullable=False, default="")
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    image: Mapped[str] = mapped_column(String, nullable=False, default="")
