from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from omicron.core.config import settings
import logging

logger = logging.getLogger(__name__)


def build_engine(url: str, **kwargs):
    """Crea el engine según el motor (PostgreSQL en producción, SQLite en desarrollo)."""
    if url.startswith("sqlite"):
        # SQLite: conexiones compartidas entre hilos del threadpool de FastAPI
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", 15)
        return create_engine(url, connect_args=connect_args, **kwargs)

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        **kwargs
    )


engine = build_engine(settings.database_url, echo=settings.DEBUG and settings.ENVIRONMENT == "development")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Genera una sesión de base de datos por request."""
    db = SessionLocal()
    try:
        yield db
    except HTTPException:
        # Errores de negocio: el servicio ya decidió qué confirmar
        db.rollback()
        raise
    except Exception as e:
        logger.error(f"Database error: {e}")
        db.rollback()
        raise
    finally:
        db.close()
