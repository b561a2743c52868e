import logging
from typing import Optional
from sqlalchemy.orm import Session
from ..models.payment import SubscriptionPlan
from ..models.track import Track

SONG_PLAN_ID = "SONG"


class MusicController:
    def save_track(
        self, db: Session, spotify_id: str, title: str, artist: str, user_email: str
    ) -> Track:
        # Le prix fait foi dans la table des plans, jamais côté client
        song_plan = db.get(SubscriptionPlan, SONG_PLAN_ID)
        if not song_plan:
            raise ValueError("song_plan_missing")

        track = Track(
            spotify_id=spotify_id,
            title=title,
            artist=artist,
            user_email=user_email,
            amount_paid=song_plan.price,
        )
        db.add(track)
        db.commit()
        db.refresh(track)
        logging.info(f"[DB] Chanson enregistrée: {title} | Montant: {song_plan.price}€")
        return track

    def list_tracks(
        self, db: Session, email: Optional[str] = None, limit: int = 50
    ) -> list[Track]:
        q = db.query(Track)
        if email:
            q = q.filter(Track.user_email == email)
        return (
            q.order_by(Track.requested_at.desc(), Track.internal_id.desc())
            .limit(limit)
            .all()
        )
