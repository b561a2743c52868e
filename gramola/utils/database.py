import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    # Fallback sur les variables DB_* (MySQL par défaut)
    db_host = os.getenv("DB_HOST")
    db_name = os.getenv("DB_DATABASE")
    db_user = os.getenv("DB_USER")
    db_password = os.getenv("DB_PASSWORD")
    db_port = os.getenv("DB_PORT", "3306")
    db_driver = os.getenv("DB_DRIVER", "mysql+pymysql")
    if all([db_host, db_name, db_user, db_password]):
        from urllib.parse import quote_plus

        enc_pwd = quote_plus(str(db_password))
        DATABASE_URL = f"{db_driver}://{db_user}:{enc_pwd}@{db_host}:{db_port}/{db_name}?charset=utf8mb4"
    else:
        raise RuntimeError("DATABASE_URL ou DB_* requis pour démarrer La Gramola")

if DATABASE_URL.startswith("sqlite"):
    # SQLite (tests/dev): une seule connexion partagée entre threads
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True, future=True)


class Base(DeclarativeBase):
    pass


# Une session par requête FastAPI
SessionLocal = sessionmaker(
    bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        # Assurer un rollback si une exception est remontée
        db.rollback()
        raise
    finally:
        db.close()


def create_all(BaseCls: type[DeclarativeBase] | None = None):
    """Créer les tables si elles n'existent pas (bootstrap sans Alembic)."""
    # Importer les modèles pour enregistrer leurs métadonnées
    from .. import models  # noqa: F401

    base = BaseCls or Base
    base.metadata.create_all(bind=engine)


def drop_all(BaseCls: type[DeclarativeBase] | None = None):
    base = BaseCls or Base
    base.metadata.drop_all(bind=engine)
