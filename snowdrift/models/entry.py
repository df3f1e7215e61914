"""Database model for raffle registrations."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, String, false, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .id_type import ID_TYPE


class Entry(Base):
    """A single raffle registration captured by the kiosk."""

    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key assigned on insertion; never reused."""

    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Entrant's first name."""

    surname: Mapped[str] = mapped_column(String(255), nullable=False)
    """Entrant's surname."""

    email: Mapped[str] = mapped_column(String(320), nullable=False)
    """Contact address. Only checked for non-emptiness."""

    number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """The entrant's guess; always ``>= 1``."""

    winner: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    """Whether the latest winner selection picked this entry."""

    __table_args__ = (
        CheckConstraint("number >= 1", name="number_positive"),
        {"sqlite_autoincrement": True},
    )

    def __init__(
        self,
        *,
        first_name: str,
        surname: str,
        email: str,
        number: int,
        winner: bool = False,
        id: Optional[int] = None,
    ) -> None:
        self.first_name = first_name
        self.surname = surname
        self.email = email
        self.number = number
        self.winner = winner
        if id is not None:
            self.id = id

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        # Never include entrant names or email here.
        return "<Entry(id={id}, number={number}, winner={winner})>".format(
            id=self.id,
            number=self.number,
            winner=self.winner,
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname}"

    @classmethod
    def get_by_id(cls, session: Session, entry_id: int) -> Optional["Entry"]:
        """Return the entry with primary key ``entry_id`` if it exists."""

        return session.scalar(select(cls).where(cls.id == entry_id))

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable dict of the entry's columns."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "surname": self.surname,
            "email": self.email,
            "number": self.number,
            "winner": self.winner,
        }


__all__ = ["Entry"]
