#!/usr/bin/env python3
import os
import logging
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .routes import public, users, payments, music, spotify
from .utils.database import create_all, SessionLocal


log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=log_level, format="%(asctime)s - %(levelname)s - %(message)s")

app = FastAPI(title="La Gramola API", version=os.getenv("APP_VERSION", "1.0.0"))

# CORS (configurable, ouvert par défaut au frontend Angular local)
if os.getenv("ENABLE_CORS", "true").lower() == "true":
    origins_env = os.getenv(
        "CORS_ALLOW_ORIGINS", "http://localhost:4200,http://127.0.0.1:4200"
    ).strip()
    allow_origins = [o.strip() for o in origins_env.split(",") if o.strip()] or ["*"]
    allow_credentials = os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
    # Les navigateurs refusent '*' avec credentials=true
    if "*" in allow_origins and allow_credentials:
        logging.warning(
            "CORS: '*' avec credentials=true n'est pas supporté par les navigateurs; credentials sera forcé à false."
        )
        allow_credentials = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include routers
app.include_router(public.router, tags=["public"])  # /health
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(payments.router, prefix="/payments", tags=["payments"])
app.include_router(music.router, prefix="/music", tags=["music"])
app.include_router(spotify.router, prefix="/spoti", tags=["spotify"])


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logging.exception(f"Erreur inattendue sur {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": f"Error interno: {exc}"})


@app.on_event("startup")
async def on_startup():
    create_all()
    db = SessionLocal()
    try:
        payments.get_payment_controller().seed_plans(db)
    finally:
        db.close()
