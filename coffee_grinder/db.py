from contextlib import contextmanager
import urllib.parse

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coffee_grinder.config import config
from coffee_grinder.exceptions import DatabaseError

class Database:
    """Database connection manager for the Coffee Grinder system."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Database, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the database connection if not already initialized."""
        if self._initialized:
            return

        self._engine = None
        self._session_factory = None
        self._initialized = True

    def initialize(self, connection_string=None):
        """Initialize database connection.

        Args:
            connection_string: Optional database connection string.
                              If not provided, will use configuration.
        """
        if connection_string is None:
            engine = config.get('DATABASE', 'engine', 'sqlite')
            if engine.startswith('sqlite'):
                connection_string = config.get_db_url()
            else:
                username = config.get('DATABASE', 'username', 'postgres')
                password = config.get('DATABASE', 'password', 'postgres')
                host = config.get('DATABASE', 'host', 'localhost')
                port = config.get('DATABASE', 'port', '5432')
                database = config.get('DATABASE', 'database', 'coffee_grinder')

                # URL encode the password to handle special characters
                password = urllib.parse.quote_plus(password)

                connection_string = f"{engine}://{username}:{password}@{host}:{port}/{database}"

        echo = config.get_boolean('DATABASE', 'echo', False)

        self._engine = create_engine(connection_string, echo=echo, **self._engine_options(connection_string))
        self._session_factory = sessionmaker(bind=self._engine)

    @staticmethod
    def _engine_options(connection_string):
        """Engine keyword arguments for the given URL.

        In-memory SQLite keeps one shared connection so that every session
        sees the same database.
        """
        if not connection_string.startswith('sqlite'):
            return {
                'pool_size': config.get_int('DATABASE', 'pool_size', 5),
                'max_overflow': config.get_int('DATABASE', 'max_overflow', 10),
                'pool_recycle': config.get_int('DATABASE', 'pool_recycle', 1800)
            }

        options = {'connect_args': {'check_same_thread': False}}
        if connection_string in ('sqlite://', 'sqlite:///:memory:'):
            options['poolclass'] = StaticPool
        return options

    def create_all_tables(self):
        """Create all tables defined in the models."""
        from coffee_grinder.models import Base
        Base.metadata.create_all(self.engine)

    def drop_all_tables(self):
        """Drop all tables from the database."""
        from coffee_grinder.models import Base
        Base.metadata.drop_all(self.engine)

    def check_connection(self):
        """Run a trivial query to make sure the store is reachable.

        Raises:
            DatabaseError: If the database cannot be reached
        """
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database connection failed: {str(e)}")

    @property
    def session_factory(self):
        """Get the session factory, initializing from configuration if needed."""
        if self._session_factory is None:
            self.initialize()
        return self._session_factory

    @property
    def engine(self):
        """Get the database engine."""
        if self._engine is None:
            self.initialize()
        return self._engine

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

# Global database instance
db = Database()

@contextmanager
def session_scope():
    """Session scope context manager."""
    with db.session_scope() as session:
        yield session
