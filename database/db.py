# File: database/db.py
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from urllib.parse import quote_plus


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    db_user = os.getenv("POSTGRES_USER")
    db_pass = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST", "localhost")
    db_port = os.getenv("POSTGRES_PORT", "5432")
    db_name = os.getenv("POSTGRES_DB")
    if not all([db_user, db_pass, db_name]):
        raise ValueError("DATABASE_URL or POSTGRES_* credentials must be provided via environment variables")

    return f"postgresql://{quote_plus(db_user)}:{quote_plus(db_pass)}@{db_host}:{db_port}/{quote_plus(db_name)}"


DATABASE_URL = _database_url()

if DATABASE_URL.startswith("sqlite"):
    # Local runs and tests; one shared connection so in-memory databases persist
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_pre_ping=True,
        connect_args={"connect_timeout": 10}
    )
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db():
    from database.models.auth_models import User
    from database.models.document_model import Document
    from database.models.collection_model import Collection
    Base.metadata.create_all(bind=engine)
