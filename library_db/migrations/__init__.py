import logging

from sqlalchemy import text

from library_db import sql
from library_db.p_models import NormalizationReport
from library_db.schema import (
    FOREIGN_KEYS_BY_NAME,
    alter_add_constraint,
    alter_drop_constraint,
    applied_constraints,
)
from library_db.utils import atomic_transaction, dialect_name, explicit_transaction

logger = logging.getLogger(__name__)

MEMBER_CONSTRAINT = FOREIGN_KEYS_BY_NAME["fk_issued_member"]


def _rename_prefix(session, params):
    members = session.execute(text(sql.RENAME_MEMBER_PREFIX), params).rowcount
    issues = session.execute(text(sql.RENAME_ISSUED_MEMBER_PREFIX), params).rowcount
    return members, issues


def _rename_with_constraint_suspended(session, params, suspend):
    if suspend:
        alter_drop_constraint(session, MEMBER_CONSTRAINT)
    counts = _rename_prefix(session, params)
    if suspend:
        alter_add_constraint(session, MEMBER_CONSTRAINT)
    return counts


def normalize_member_ids(session, old_prefix="C", new_prefix="M") -> NormalizationReport:
    """
    Rewrite the leading ``old_prefix`` of member ids to ``new_prefix`` in both
    members and issued_status, so every issue keeps pointing at its member.

    Both tables change in a single transaction or not at all. Once
    fk_issued_member is in place, PostgreSQL drops and re-adds it inside that
    transaction; SQLite defers the check to commit instead. A collision with
    an existing id, or an issue left pointing at a missing member, aborts
    the whole rewrite.
    """
    if not old_prefix:
        raise ValueError("old_prefix must not be empty")

    params = {
        "old_prefix": old_prefix,
        "new_prefix": new_prefix,
        "prefix_length": len(old_prefix),
    }
    suspend = MEMBER_CONSTRAINT.name in applied_constraints(session, MEMBER_CONSTRAINT.table)

    if dialect_name(session) == "sqlite":
        with explicit_transaction(session):
            if suspend:
                session.execute(text("PRAGMA defer_foreign_keys = ON"))
            members, issues = _rename_prefix(session, params)
    else:
        members, issues = atomic_transaction(_rename_with_constraint_suspended)(
            session, params, suspend
        )

    report = NormalizationReport(
        old_prefix=old_prefix,
        new_prefix=new_prefix,
        members=members,
        issues=issues,
        constraint_suspended=suspend,
    )
    logger.info(
        "Renamed member prefix %s -> %s: %d members, %d issues",
        old_prefix,
        new_prefix,
        members,
        issues,
    )
    return report
