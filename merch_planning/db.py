from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, scoped_session

from merch_planning.config import config
from merch_planning.exceptions import ConfigError, DatabaseError

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

class Database:
    """Database connection manager for the Merchandise Planning Engine.

    The engine is created lazily from ``config.get_db_url()`` on first use
    unless initialize() is called with an explicit URL.
    """

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Database, cls).__new__(cls)
            cls._instance._engine = None
            cls._instance._session = None
        return cls._instance

    def initialize(self, connection_string=None):
        """Create the engine and the thread-local session registry.

        Args:
            connection_string: SQLAlchemy URL, defaults to the configured one

        Raises:
            ConfigError: if no URL is configured
        """
        url = connection_string or config.get_db_url()
        if not url:
            raise ConfigError("No database URL configured", code='DB_URL')

        engine_kwargs = {'echo': config.get_boolean('DATABASE', 'echo', False)}
        is_sqlite = url.startswith('sqlite')
        if not is_sqlite:
            engine_kwargs.update(
                pool_size=config.get_int('DATABASE', 'pool_size', 5),
                max_overflow=config.get_int('DATABASE', 'max_overflow', 10),
                pool_recycle=config.get_int('DATABASE', 'pool_recycle', 1800)
            )

        self._engine = create_engine(url, **engine_kwargs)
        if is_sqlite:
            # Breakdown lines and comments reference their product
            event.listen(self._engine, 'connect', _enable_sqlite_foreign_keys)

        self._session = scoped_session(sessionmaker(bind=self._engine))

    def create_all_tables(self):
        from merch_planning.models import Base
        Base.metadata.create_all(self.engine)

    def drop_all_tables(self):
        from merch_planning.models import Base
        Base.metadata.drop_all(self.engine)

    @property
    def engine(self):
        if self._engine is None:
            self.initialize()
        return self._engine

    @property
    def session(self):
        """Thread-local session registry; call it to get the session."""
        if self._session is None:
            self.initialize()
        return self._session

    @contextmanager
    def session_scope(self):
        """Commit on success, roll back and re-raise on any error.

        SQLAlchemy errors are re-raised as DatabaseError.
        """
        session = self.session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise DatabaseError(str(e), code='DB') from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

# Global database instance
db = Database()

def get_session():
    return db.session()

@contextmanager
def session_scope():
    """Session scope context manager."""
    with db.session_scope() as session:
        yield session
