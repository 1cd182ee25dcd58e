# gymdash/db.py
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL

log = logging.getLogger(__name__)

Base = declarative_base()

_engine = None
_Session = None
_url: Optional[str] = None


def init_db(database_url: Optional[str] = None):
    """Create the engine/session factory for `database_url` and make sure tables exist."""
    global _engine, _Session, _url
    url = database_url or DATABASE_URL
    if _engine is not None and _url == url:
        return _engine
    if _engine is not None:
        _engine.dispose()

    _engine = create_engine(url, pool_pre_ping=True, future=True)
    _Session = sessionmaker(bind=_engine, autoflush=False, autocommit=False, future=True)
    _url = url

    from . import models  # noqa: F401  (registers tables on Base.metadata)
    Base.metadata.create_all(_engine)

    # sanity ping
    with _engine.connect() as c:
        c.execute(text("SELECT 1"))
    log.info("[DB] ready")
    return _engine


@contextmanager
def get_session():
    """Provide a transactional scope: commit on success, roll back on error."""
    if _Session is None:
        init_db()
    s = _Session()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
