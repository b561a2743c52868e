from datetime import datetime
from pydantic import BaseModel


class TrackIn(BaseModel):
    id: str | None = None
    title: str | None = None
    artist: str | None = None
    email: str | None = None


class TrackOut(BaseModel):
    internalId: int
    spotifyId: str
    title: str
    artist: str
    userEmail: str
    requestedAt: datetime
    amountPaid: float
