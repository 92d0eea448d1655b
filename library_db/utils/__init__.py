import logging
import sys
from contextlib import contextmanager
from functools import wraps

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.sql.elements import DQLDMLClauseElement

from library_db.config import Config, get_config

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class LibraryDBError(Exception):
    pass


class ConstraintViolationError(LibraryDBError):
    def __init__(self, constraint, rows=()):
        self.constraint = constraint
        self.rows = list(rows)
        message = f"Constraint {constraint} is violated by existing rows"
        if self.rows:
            message += f": {self.rows}"
        super().__init__(message)


class RowValidationError(LibraryDBError):
    def __init__(self, table, index, errors):
        self.table = table
        self.index = index
        self.errors = errors
        super().__init__(f"Row {index} of {table} is invalid: {errors}")


class RecordNotFoundError(LibraryDBError):
    pass


def setup_logging(level=None):
    if level is None:
        level = get_config().LOG_LEVEL
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    if log_level > logging.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def make_engine(config: type[Config] = None):
    config = config or get_config()
    engine = create_engine(config.SQLALCHEMY_DATABASE_URI, echo=config.SQLALCHEMY_ECHO)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


@contextmanager
def open_session(config: type[Config] = None):
    """
    Open a session on a fresh engine and dispose of both on exit.

    Uncommitted work is rolled back when the block raises.
    """
    engine = make_engine(config)
    session = scoped_session(sessionmaker(bind=engine))
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.remove()
        engine.dispose()


def dialect_name(session: Session) -> str:
    return session.get_bind().dialect.name


def sql_compile(clause: DQLDMLClauseElement, dialect=None, session: Session = None) -> str:
    """Render a statement for log output, in the dialect of ``session`` when given."""
    if isinstance(clause, str):
        clauses = clause.split("\n")
        return "\n".join([line.strip() for line in clauses if line.strip()])
    if session is not None:
        compiler_dialect = session.get_bind().dialect
    else:
        compiler_dialect = (dialect or get_config().DIALECT)()
    return str(clause.compile(dialect=compiler_dialect, compile_kwargs={"literal_binds": True}))


def atomic_transaction(func):
    """
    Decorator to wrap a function in an atomic transaction.
    The wrapped function receives the session as its first argument.
    """

    @wraps(func)
    def wrapper(session, *args, **kwargs):
        try:
            result = func(session, *args, **kwargs)
            session.commit()
            return result
        except SQLAlchemyError as e:
            session.rollback()
            raise e
        except Exception as e:
            session.rollback()
            raise e

    return wrapper


def _in_dbapi_transaction(session: Session) -> bool:
    return session.connection().connection.dbapi_connection.in_transaction


@contextmanager
def explicit_transaction(session: Session, foreign_keys=True):
    """
    Run a block inside an explicit SQLite transaction.

    pysqlite only opens transactions implicitly before DML, so DDL and
    PRAGMAs are wrapped in a BEGIN/COMMIT issued by hand. With
    ``foreign_keys=False`` enforcement is switched off for the duration of
    the block, which SQLite only honours outside a transaction. The whole
    block runs on the connection the session holds.
    """
    session.commit()
    if not foreign_keys:
        session.execute(text("PRAGMA foreign_keys = OFF"))
    session.execute(text("BEGIN"))
    try:
        yield session
        session.execute(text("COMMIT"))
    except Exception:
        if _in_dbapi_transaction(session):
            session.execute(text("ROLLBACK"))
        raise
    finally:
        if not foreign_keys:
            session.execute(text("PRAGMA foreign_keys = ON"))
        session.commit()
