from pydantic import BaseModel, Field


class RegisterIn(BaseModel):
    # Champs facultatifs ici: la validation métier (406) est faite dans la route
    bar: str | None = None
    email: str | None = None
    pwd1: str | None = None
    pwd2: str | None = None
    clientId: str | None = None
    clientSecret: str | None = None
    address: str | None = None
    signature: str | None = None


class LoginIn(BaseModel):
    email: str | None = None
    pwd: str | None = None


class LoginOut(BaseModel):
    email: str
    clientId: str | None = None
    lat: float | None = None
    lng: float | None = None
    signature: str | None = None


class StatusOut(BaseModel):
    status: str
    message: str


class ResetTokenIn(BaseModel):
    email: str | None = None


class ResetTokenOut(StatusOut):
    resetUrl: str


class ResetPwdIn(BaseModel):
    email: str | None = None
    token: str | None = None
    newPwd: str | None = Field(default=None, description="Nouveau mot de passe")


class DistanceOut(BaseModel):
    distance: float
    radius: float
    withinRadius: bool
