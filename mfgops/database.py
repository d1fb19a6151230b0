# mfgops/database.py

from typing import Iterator

from sqlmodel import SQLModel, Session, create_engine

from .config import settings

# sqlite needs check_same_thread off because FastAPI runs sync routes in a threadpool
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args)


def create_db_and_tables() -> None:
    # Import models so every table is registered on SQLModel.metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session
