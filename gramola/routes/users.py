import logging
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from ..utils.database import get_db
from ..utils.mailer import build_password_reset_link, build_payment_redirect
from ..controllers.user_controller import UserController
from ..schemas.user import (
    RegisterIn,
    LoginIn,
    LoginOut,
    StatusOut,
    ResetTokenIn,
    ResetTokenOut,
    ResetPwdIn,
    DistanceOut,
)

router = APIRouter()
ctrl = UserController()

# Codes métier -> (statut HTTP, message)
_ERRORS = {
    "email_taken": (409, "El email ya está registrado"),
    "invalid_credentials": (403, "No existe el usuario o la contraseña es incorrecta"),
    "email_not_confirmed": (406, "El usuario no ha confirmado su email"),
    "user_not_found": (404, "No existe el usuario"),
    "no_creation_token": (406, "El usuario no tiene token de creación"),
    "token_mismatch": (406, "Token incorrecto"),
    "token_not_found": (404, "Token no válido"),
    "token_expired": (410, "Token caducado"),
    "token_used": (410, "Token ya usado"),
    "coordinates_unavailable": (409, "El bar no tiene coordenadas registradas"),
}


def _http_error(e: ValueError) -> HTTPException:
    code = str(e)
    if code in _ERRORS:
        status, detail = _ERRORS[code]
        return HTTPException(status_code=status, detail=detail)
    return HTTPException(status_code=500, detail=f"Error inesperado: {code}")


def _blank(v: str | None) -> bool:
    return v is None or not v.strip()


def _validate_registration(body: RegisterIn) -> None:
    if _blank(body.bar):
        raise HTTPException(status_code=406, detail="El nombre del bar es obligatorio")
    if _blank(body.signature):
        raise HTTPException(status_code=406, detail="La firma del propietario es obligatoria.")
    if _blank(body.address):
        raise HTTPException(
            status_code=406,
            detail="La dirección del bar es obligatoria para la geolocalización.",
        )
    if _blank(body.clientId) or _blank(body.clientSecret):
        raise HTTPException(
            status_code=406,
            detail="Las claves de Spotify (Client Id/Secret) son obligatorias",
        )
    if body.pwd1 is None or body.pwd2 is None or body.pwd1 != body.pwd2:
        raise HTTPException(status_code=406, detail="Las contraseñas no coinciden")
    if len(body.pwd1) < 8:
        raise HTTPException(
            status_code=406, detail="La contraseña debe tener al menos 8 caracteres"
        )
    if body.email is None or "@" not in body.email or "." not in body.email:
        raise HTTPException(status_code=406, detail="Dirección de email inválida")


@router.post("/register", status_code=204)
def register(body: RegisterIn, db: Session = Depends(get_db)):
    _validate_registration(body)
    try:
        ctrl.register(
            db,
            body.bar.strip(),
            body.email.strip(),
            body.pwd1,
            body.clientId.strip(),
            body.clientSecret.strip(),
            body.address.strip(),
            body.signature,
        )
    except ValueError as e:
        raise _http_error(e)
    return Response(status_code=204)


@router.post("/login", response_model=LoginOut)
def login(body: LoginIn, db: Session = Depends(get_db)):
    try:
        u = ctrl.login(db, body.email or "", body.pwd or "")
    except ValueError as e:
        raise _http_error(e)
    return LoginOut(
        email=u.email,
        clientId=u.client_id,
        lat=u.lat,
        lng=u.lng,
        signature=u.signature,
    )


@router.delete("/delete", status_code=204)
def delete(email: str, db: Session = Depends(get_db)):
    try:
        ctrl.delete(db, email)
    except ValueError as e:
        raise _http_error(e)
    return Response(status_code=204)


@router.get("/confirmToken/{email}")
def confirm_token_redirect(email: str, token: str, db: Session = Depends(get_db)):
    """Lien reçu par email: active le compte puis redirige vers la page de paiement."""
    try:
        ctrl.confirm_token(db, email, token)
    except ValueError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error inesperado en la confirmación: {e}"
        )
    return RedirectResponse(build_payment_redirect(token), status_code=302)


@router.get("/confirm", response_model=StatusOut)
def confirm(email: str, token: str, db: Session = Depends(get_db)):
    try:
        ctrl.confirm_token(db, email, token)
    except ValueError as e:
        raise _http_error(e)
    except Exception as e:
        raise HTTPException(status_code=400, detail=str(e))
    return StatusOut(status="ok", message="Usuario confirmado")


@router.post("/password/token", response_model=ResetTokenOut)
def create_reset_token(body: ResetTokenIn, db: Session = Depends(get_db)):
    email = (body.email or "").strip()
    try:
        token_id = ctrl.create_password_reset_token(db, email)
    except ValueError as e:
        raise _http_error(e)
    reset_url = build_password_reset_link(email, token_id)
    logging.info(f"[RESET LINK] {reset_url}")
    ctrl.send_reset_password_email(email, reset_url)
    return ResetTokenOut(
        status="ok",
        message="Si el usuario existe, se ha enviado un enlace.",
        resetUrl=reset_url,
    )


@router.post("/password/reset", response_model=StatusOut)
def reset_password(body: ResetPwdIn, db: Session = Depends(get_db)):
    if _blank(body.newPwd) or len(body.newPwd) < 8:
        raise HTTPException(
            status_code=406, detail="La contraseña debe tener al menos 8 caracteres"
        )
    try:
        ctrl.reset_password(db, (body.email or "").strip(), body.token or "", body.newPwd)
    except ValueError as e:
        raise _http_error(e)
    return StatusOut(status="ok", message="Contraseña actualizada correctamente.")


@router.get("/distance", response_model=DistanceOut)
def distance(email: str, lat: float, lng: float, db: Session = Depends(get_db)):
    try:
        d, radius, inside = ctrl.distance_to_bar(db, email, lat, lng)
    except ValueError as e:
        raise _http_error(e)
    return DistanceOut(distance=round(d, 1), radius=radius, withinRadius=inside)
