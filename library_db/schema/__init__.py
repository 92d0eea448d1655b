"""
Schema creation and deferred foreign-key application.

Tables are created bare. Foreign keys are added only once the bulk-loaded
rows have been cleaned, because historical data routinely violates them
until then, and because branch and employees reference each other.
"""

import logging
import re
from typing import NamedTuple

from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from library_db import sql
from library_db.utils import (
    ConstraintViolationError,
    LibraryDBError,
    atomic_transaction,
    dialect_name,
    explicit_transaction,
    sql_compile,
)

logger = logging.getLogger(__name__)

TABLE_NAMES = ("branch", "members", "employees", "books", "issued_status", "return_status")

_CREATE_TABLE_NAME = re.compile(r'^\s*CREATE TABLE\s+(?:"[^"]+"|\w+)', re.IGNORECASE)


class ForeignKey(NamedTuple):
    name: str
    table: str
    column: str
    ref_table: str
    ref_column: str

    @property
    def clause(self) -> str:
        return sql.FOREIGN_KEY_CLAUSE.format(**self._asdict())

    def __str__(self):
        return f"{self.name} ({self.table}.{self.column} -> {self.ref_table}.{self.ref_column})"


FOREIGN_KEYS = (
    ForeignKey("fk_employees_branch", "employees", "branch_id", "branch", "branch_id"),
    ForeignKey("fk_branch_manager", "branch", "manager_id", "employees", "emp_id"),
    ForeignKey("fk_issued_member", "issued_status", "issued_member_id", "members", "member_id"),
    ForeignKey("fk_issued_book", "issued_status", "issued_book_isbn", "books", "isbn"),
    ForeignKey("fk_issued_emp", "issued_status", "issued_emp_id", "employees", "emp_id"),
    ForeignKey("fk_return_issued", "return_status", "issued_id", "issued_status", "issued_id"),
    ForeignKey("fk_return_book", "return_status", "return_book_isbn", "books", "isbn"),
)

FOREIGN_KEYS_BY_NAME = {fk.name: fk for fk in FOREIGN_KEYS}


def _statements(script):
    return [stmt.strip() for stmt in script.split(";") if stmt.strip()]


def _resolve(fk) -> ForeignKey:
    if isinstance(fk, ForeignKey):
        return fk
    try:
        return FOREIGN_KEYS_BY_NAME[fk]
    except KeyError:
        raise LibraryDBError(f"Unknown constraint: {fk}") from None


def _check_dialect(session) -> str:
    dialect = dialect_name(session)
    if dialect not in sql.DROP_TABLES:
        raise LibraryDBError(f"Unsupported database dialect: {dialect}")
    return dialect


def existing_tables(session) -> set:
    return set(inspect(session.connection()).get_table_names())


def applied_constraints(session, table=None) -> set:
    """Names of the foreign keys currently defined on ``table`` (or on every table)."""
    inspector = inspect(session.connection())
    present = set(inspector.get_table_names())
    tables = [table] if table else [name for name in TABLE_NAMES if name in present]
    return {
        fk["name"]
        for name in tables
        for fk in inspector.get_foreign_keys(name)
        if fk.get("name")
    }


def _recreate(session, dialect):
    if dialect == "sqlite" and "branch" in existing_tables(session):
        session.execute(text(sql.BREAK_MANAGER_CYCLE))
    for stmt in _statements(sql.DROP_TABLES[dialect]) + _statements(sql.CREATE_TABLES):
        logger.debug(sql_compile(stmt))
        session.execute(text(stmt))


def create_tables(session):
    """Drop whatever exists of the schema and create the six bare tables."""
    dialect = _check_dialect(session)
    if dialect == "sqlite":
        with explicit_transaction(session):
            _recreate(session, dialect)
    else:
        atomic_transaction(_recreate)(session, dialect)
    logger.info("Created tables: %s", ", ".join(TABLE_NAMES))


def _append_clause(ddl, clause):
    body, _, tail = ddl.rpartition(")")
    return f"{body.rstrip()},\n\t{clause}\n){tail}"


def _strip_clause(ddl, name):
    pattern = re.compile(
        r',\s*CONSTRAINT\s+"?%s"?\s+FOREIGN KEY\s*\([^)]*\)\s*REFERENCES\s+"?\w+"?\s*\([^)]*\)'
        % re.escape(name),
        re.IGNORECASE,
    )
    return pattern.sub("", ddl, count=1)


def _rebuild_sqlite_table(session, table, transform, check=None):
    # SQLite cannot ALTER constraints: copy into a redefined table and swap it in.
    ddl = session.execute(text(sql.SQLITE_TABLE_DDL), {"name": table}).scalar_one()
    scratch = f"{table}__rebuild"
    rebuilt = _CREATE_TABLE_NAME.sub(f'CREATE TABLE "{scratch}"', transform(ddl), count=1)
    with explicit_transaction(session, foreign_keys=False):
        session.execute(text(rebuilt))
        session.execute(text(sql.SQLITE_COPY_ROWS.format(target=scratch, source=table)))
        session.execute(text(sql.SQLITE_DROP_TABLE.format(table=table)))
        session.execute(text(sql.SQLITE_RENAME_TABLE.format(source=scratch, target=table)))
        if check is None:
            return
        violations = session.execute(text(sql.SQLITE_FOREIGN_KEY_CHECK.format(table=table))).all()
        if violations:
            offending = [
                session.execute(
                    text(f'SELECT "{check.column}" FROM "{table}" WHERE rowid = :rowid'),
                    {"rowid": row[1]},
                ).scalar()
                for row in violations
            ]
            raise ConstraintViolationError(check.name, offending)


def alter_add_constraint(session, fk: ForeignKey):
    """ALTER TABLE ... ADD CONSTRAINT, leaving the transaction open."""
    stmt = sql.ADD_CONSTRAINT.format(table=fk.table, clause=fk.clause)
    logger.debug(sql_compile(stmt))
    try:
        session.execute(text(stmt))
    except IntegrityError as e:
        raise ConstraintViolationError(fk.name) from e


def alter_drop_constraint(session, fk: ForeignKey):
    """ALTER TABLE ... DROP CONSTRAINT, leaving the transaction open."""
    stmt = sql.DROP_CONSTRAINT.format(table=fk.table, name=fk.name)
    logger.debug(sql_compile(stmt))
    session.execute(text(stmt))


def _add_constraint(session, fk, dialect):
    if fk.name in applied_constraints(session, fk.table):
        logger.info("Constraint %s is already applied", fk.name)
        return False
    if dialect == "sqlite":
        _rebuild_sqlite_table(session, fk.table, lambda ddl: _append_clause(ddl, fk.clause), check=fk)
    else:
        alter_add_constraint(session, fk)
    logger.info("Applied constraint %s", fk)
    return True


def _drop_constraint(session, fk, dialect):
    if fk.name not in applied_constraints(session, fk.table):
        logger.info("Constraint %s is not applied", fk.name)
        return False
    if dialect == "sqlite":
        _rebuild_sqlite_table(session, fk.table, lambda ddl: _strip_clause(ddl, fk.name))
    else:
        alter_drop_constraint(session, fk)
    logger.info("Dropped constraint %s", fk)
    return True


def add_constraint(session, fk) -> bool:
    """
    Add one foreign key over the rows already present.

    Raises ConstraintViolationError, leaving the table unconstrained, if any
    row references a missing parent. Returns False if it was already applied.
    """
    fk = _resolve(fk)
    dialect = _check_dialect(session)
    if dialect == "sqlite":
        return _add_constraint(session, fk, dialect)
    return atomic_transaction(_add_constraint)(session, fk, dialect)


def drop_constraint(session, fk) -> bool:
    fk = _resolve(fk)
    dialect = _check_dialect(session)
    if dialect == "sqlite":
        return _drop_constraint(session, fk, dialect)
    return atomic_transaction(_drop_constraint)(session, fk, dialect)


def apply_constraints(session) -> list:
    """
    Add every foreign key in FOREIGN_KEYS order. Returns the names newly applied.

    On PostgreSQL the whole set is added in one transaction. On SQLite each
    table rebuild commits on its own, so a failure keeps the keys added
    before it.
    """
    dialect = _check_dialect(session)

    def _add_all(session):
        return [fk.name for fk in FOREIGN_KEYS if _add_constraint(session, fk, dialect)]

    if dialect == "sqlite":
        applied = _add_all(session)
    else:
        applied = atomic_transaction(_add_all)(session)
    logger.info("Applied %d of %d constraints", len(applied), len(FOREIGN_KEYS))
    return applied
