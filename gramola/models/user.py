import time
import uuid
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Float, BigInteger, ForeignKey
from ..utils.database import Base

# Durée de validité d'un token (confirmation ou reset): 30 minutes
TOKEN_TTL_MS = 30 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_token_id() -> str:
    return str(uuid.uuid4())


class Token(Base):
    __tablename__ = "tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_token_id)
    creation_time: Mapped[int] = mapped_column(BigInteger, default=_now_ms)
    # 0 = jamais utilisé
    use_time: Mapped[int] = mapped_column(BigInteger, default=0)
    # Destinataire d'un token de réinitialisation (NULL pour un token de création)
    reset_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    def __init__(self, **kw):
        # Renseigner id/horodatage dès la construction (comme avant le flush)
        kw.setdefault("id", _new_token_id())
        kw.setdefault("creation_time", _now_ms())
        kw.setdefault("use_time", 0)
        super().__init__(**kw)

    def is_used(self) -> bool:
        return (self.use_time or 0) > 0

    def use(self, now: Optional[int] = None) -> None:
        self.use_time = now if now is not None else _now_ms()

    def is_expired(self, now: Optional[int] = None) -> bool:
        now = now if now is not None else _now_ms()
        return now - self.creation_time >= TOKEN_TTL_MS


class User(Base):
    __tablename__ = "users"

    # L'email fait office de clé primaire
    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    bar: Mapped[str] = mapped_column(String(100))
    pwd: Mapped[str] = mapped_column(String(255))
    client_id: Mapped[Optional[str]] = mapped_column(String(255), index=True, nullable=True)
    # Chiffré si ENCRYPTION_KEY/SECRET_KEY est défini
    client_secret: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    spotify_access_token: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    # Signature manuscrite (image base64)
    signature: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    creation_token_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("tokens.id"), nullable=True
    )

    creation_token: Mapped[Optional[Token]] = relationship(
        Token, cascade="all, delete-orphan", single_parent=True, lazy="joined"
    )
