from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .utils import is_memory_sqlite_url


def make_engine(database_url: Optional[str] = None, echo: bool = False):
    """Create an engine for ``database_url`` (defaults to the configured ``DB_URL``)."""
    if database_url is None:
        from ..config import load_settings

        database_url = load_settings().db_url
    url = database_url

    kwargs = {}
    if is_memory_sqlite_url(url):
        # One shared connection, otherwise every pooled connection would see
        # its own empty database. The store serializes access to it.
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    return create_engine(
        url,
        echo=echo,
        future=True,
        **kwargs,
    )


def get_sessionmaker(engine):
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,  # Entries stay readable after the store's session closes
        future=True,
    )
