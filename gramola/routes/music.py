import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from ..utils.database import get_db
from ..controllers.music_controller import MusicController
from ..schemas.music import TrackIn, TrackOut

router = APIRouter()
ctrl = MusicController()


@router.post("/add")
def add_track(body: TrackIn, db: Session = Depends(get_db)):
    if not body.id:
        raise HTTPException(status_code=400, detail="Falta el ID de Spotify")
    try:
        ctrl.save_track(
            db,
            body.id,
            "Desconocido" if body.title is None else body.title,
            "Desconocido" if body.artist is None else body.artist,
            "anonimo" if body.email is None else body.email,
        )
    except ValueError as e:
        if str(e) == "song_plan_missing":
            raise HTTPException(
                status_code=500,
                detail="No se ha definido el precio de las canciones en la BD",
            )
        raise HTTPException(status_code=500, detail="Error interno al registrar la canción")
    except Exception as e:
        logging.error(f"[ERREUR] Échec /music/add: {e}")
        raise HTTPException(status_code=500, detail="Error interno al registrar la canción")
    return {"status": "ok"}


@router.get("/history", response_model=list[TrackOut])
def history(
    email: str | None = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return [
        TrackOut(
            internalId=t.internal_id,
            spotifyId=t.spotify_id,
            title=t.title,
            artist=t.artist,
            userEmail=t.user_email,
            requestedAt=t.requested_at,
            amountPaid=float(t.amount_paid),
        )
        for t in ctrl.list_tracks(db, email=email, limit=limit)
    ]
