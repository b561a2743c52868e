from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from ..utils.database import get_db
from ..controllers.spotify_controller import SpotifyController
from ..services.spotify_client_service import SpotifyError, SpotifyResponse

router = APIRouter()
ctrl = SpotifyController()

# Header Authorization facultatif: repli sur le token stocké du bar (?email=)
bearer_scheme = HTTPBearer(auto_error=False)


def get_spotify_token(
    email: str | None = None,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> str:
    if creds and creds.credentials:
        return creds.credentials
    token = ctrl.stored_access_token(db, email) if email else None
    if not token:
        raise HTTPException(status_code=401, detail="Token de Spotify requerido")
    return token


def _relay(call) -> Response:
    try:
        res: SpotifyResponse = call()
    except SpotifyError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if res.body is None:
        return Response(status_code=res.status_code)
    return JSONResponse(status_code=res.status_code, content=res.body)


@router.get("/getAuthorizationToken")
def get_authorization_token(code: str, clientId: str, db: Session = Depends(get_db)):
    try:
        return ctrl.get_authorization_token(db, code, clientId)
    except ValueError as e:
        code_ = str(e)
        if code_ == "client_id_unknown":
            raise HTTPException(
                status_code=403,
                detail="Client ID de Spotify no registrado en el sistema.",
            )
        raise HTTPException(status_code=502, detail="Error de comunicación con Spotify.")


@router.get("/devices")
def devices(token: str = Depends(get_spotify_token)):
    return _relay(lambda: ctrl.get_devices(token))


@router.get("/playlists")
def playlists(token: str = Depends(get_spotify_token)):
    return _relay(lambda: ctrl.get_playlists(token))


@router.get("/search")
def search(q: str, token: str = Depends(get_spotify_token)):
    if not q.strip():
        raise HTTPException(status_code=400, detail="Falta el texto de búsqueda")
    return _relay(lambda: ctrl.search_tracks(token, q))


@router.get("/currently-playing")
def currently_playing(token: str = Depends(get_spotify_token)):
    return _relay(lambda: ctrl.get_currently_playing(token))


@router.post("/queue")
def queue(
    uri: str,
    deviceId: str | None = None,
    token: str = Depends(get_spotify_token),
):
    return _relay(lambda: ctrl.add_to_queue(token, uri, deviceId))
