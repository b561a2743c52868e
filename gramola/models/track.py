from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, Numeric, Integer
from ..utils.database import Base


class Track(Base):
    """Historique des chansons payées (append-only)."""

    __tablename__ = "tracks"

    # Clé autoincrémentée: une même chanson peut être demandée plusieurs fois
    internal_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    spotify_id: Mapped[str] = mapped_column(String(64), index=True)
    title: Mapped[str] = mapped_column(String(255))
    artist: Mapped[str] = mapped_column(String(255))
    user_email: Mapped[str] = mapped_column(String(255), index=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    # Copié depuis le plan SONG au moment de l'écriture
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2))
