from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import Settings

Base = declarative_base()

SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def make_engine(settings: Settings) -> Engine:
    """
    Engine for the reports database, with every statement bounded by a
    timeout so a stuck query cannot hang the ingestion cycle.
    """
    url = settings.database_url
    connect_args = {}
    kwargs = {}

    if url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"
    elif url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = settings.db_statement_timeout_ms / 1000
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise each session gets its own empty db
            kwargs["poolclass"] = StaticPool

    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args=connect_args,
        **kwargs,
    )


def init_db(engine: Engine) -> None:
    from . import models  # noqa: F401  register tables on Base

    Base.metadata.create_all(bind=engine)
    SessionLocal.configure(bind=engine)


# Dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
