import logging
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from errors import ConflictError
from models.models import Base

logger = logging.getLogger(__name__)


# SQLSTATE for unique_violation (PostgreSQL), MySQL ER_DUP_ENTRY
UNIQUE_VIOLATION_SQLSTATE = '23505'
MYSQL_DUP_ENTRY = 1062


def is_unique_violation(error):
    orig = getattr(error, 'orig', None)
    sqlstate = getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    args = getattr(orig, 'args', ())
    if args and args[0] == MYSQL_DUP_ENTRY:
        return True
    # sqlite3: "UNIQUE constraint failed: users.username"
    return 'UNIQUE constraint failed' in str(orig)


@dataclass(frozen=True)
class StoreConfig:
    url: str
    echo: bool = False

    @classmethod
    def from_config(cls, config):
        return cls(url=config.SQLALCHEMY_DATABASE_URI, echo=config.SQLALCHEMY_ECHO)

    @property
    def is_memory_sqlite(self):
        return self.url in ('sqlite://', 'sqlite:///:memory:')


class Store:
    """Owns the engine and session factory for identities and profiles.

    Built once at startup and handed to the services; nothing in the
    application reaches for a module-level connection.
    """

    def __init__(self, config):
        self.config = config
        self.engine = None
        self._session_factory = None

    @property
    def connected(self):
        return self.engine is not None

    def connect(self):
        if self.connected:
            return self

        engine_kwargs = {'echo': self.config.echo}
        if self.config.is_memory_sqlite:
            # One shared connection, otherwise every checkout sees an empty database
            engine_kwargs.update(
                poolclass=StaticPool,
                connect_args={'check_same_thread': False},
            )
        engine = create_engine(self.config.url, **engine_kwargs)

        # Fail fast when the database is unreachable
        with engine.connect() as conn:
            conn.execute(text('SELECT 1'))
        Base.metadata.create_all(bind=engine)

        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False,
        )
        logger.info("Connected to store %s", engine.url.render_as_string(hide_password=True))
        return self

    def disconnect(self):
        if not self.connected:
            return
        self.engine.dispose()
        self.engine = None
        self._session_factory = None
        logger.info("Disconnected from store")

    @contextmanager
    def session_scope(self, conflict_message=None):
        """Transactional scope: commit on success, rollback on any error.

        Unique constraint violations are re-raised as ConflictError so callers
        never inspect driver specific error codes. Other integrity failures
        (NOT NULL, foreign keys) propagate unchanged.
        """
        if not self.connected:
            raise RuntimeError('Store is not connected')
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if not is_unique_violation(e):
                raise
            logger.info("Uniqueness violation: %s", e.orig)
            raise ConflictError(conflict_message) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
