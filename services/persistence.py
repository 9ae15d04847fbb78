import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models.response import Base, Response

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class StorageWriteError(StorageError):
    pass


class StorageReadError(StorageError):
    pass


def _enable_wal(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    cursor.execute('PRAGMA journal_mode=WAL')
    cursor.close()


def make_engine(db_uri):
    kwargs = {}
    url = make_url(db_uri)
    is_sqlite = url.get_backend_name() == 'sqlite'
    if is_sqlite and url.database in (None, '', ':memory:'):
        # one shared connection, otherwise every session sees an empty database
        kwargs.update(poolclass=StaticPool, connect_args={'check_same_thread': False})
    elif is_sqlite:
        # Flask serves from a different thread than the one that opened the file
        kwargs.update(connect_args={'check_same_thread': False})
    engine = create_engine(db_uri, **kwargs)
    if engine.dialect.name == 'sqlite':
        event.listen(engine, 'connect', _enable_wal)
    return engine


class PersistenceLayer:
    """Append-only store of completed survey responses."""

    def __init__(self, db_uri=None, engine=None):
        if engine is None and db_uri is None:
            raise ValueError('db_uri or engine is required')
        self.engine = engine if engine is not None else make_engine(db_uri)
        self.Session = sessionmaker(bind=self.engine)

    def init_schema(self):
        # create_all skips tables and indexes that already exist; rows are never touched
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error('Schema initialisation failed: %s', e)
            raise StorageWriteError(f'Could not initialise storage: {e}') from e

    def commit(self, record):
        """Append one row for `record` and return its id.

        No deduplication happens here: every call inserts.
        """
        session_db = self.Session()
        try:
            row = Response.from_answers(record)
            session_db.add(row)
            session_db.flush()
            record_id = row.id
            session_db.commit()
        except (SQLAlchemyError, OSError) as e:
            session_db.rollback()
            logger.error('Error saving response: %s', e)
            raise StorageWriteError(f'Could not save response: {e}') from e
        finally:
            session_db.close()
        logger.info('Response %s saved', record_id)
        return record_id

    def query_all(self):
        session_db = self.Session()
        try:
            rows = session_db.query(Response).order_by(Response.id.asc()).all()
            return [row.to_record() for row in rows]
        except (SQLAlchemyError, OSError) as e:
            logger.error('Error reading responses: %s', e)
            raise StorageReadError(f'Could not read responses: {e}') from e
        finally:
            session_db.close()

    def dispose(self):
        self.engine.dispose()
