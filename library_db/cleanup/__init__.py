import logging

from sqlalchemy import text

from library_db import sql
from library_db.p_models import CleanupReport, ReturnRow
from library_db.utils import atomic_transaction, dialect_name

logger = logging.getLogger(__name__)


@atomic_transaction
def clean_return_records(session) -> CleanupReport:
    """
    Bring return_status into line with issued_status before constraints go on.

    Returns matched to an issue (ignoring surrounding whitespace) get the
    issue's exact issued_id, title and isbn copied over wherever they differ.
    Returns with no issue, or a NULL one, are deleted; each is logged at
    WARNING level since no other copy of it is kept. Running this again
    changes nothing.
    """
    candidates = session.execute(text(sql.RECONCILE_CANDIDATES[dialect_name(session)])).mappings().all()
    if candidates:
        session.execute(text(sql.RECONCILE_RETURN), [dict(row) for row in candidates])
    for row in candidates:
        logger.info(
            "Reconciled return %s with issue %s (%s, %s)",
            row["return_id"],
            row["issued_id"],
            row["issued_book_name"],
            row["issued_book_isbn"],
        )

    orphans = session.execute(text(sql.ORPHANED_RETURNS)).mappings().all()
    for row in orphans:
        logger.warning("Removing orphaned return record %s", dict(row))
    if orphans:
        session.execute(text(sql.DELETE_ORPHANED_RETURNS))

    report = CleanupReport(
        reconciled=[row["return_id"] for row in candidates],
        removed=[ReturnRow.model_validate(dict(row)) for row in orphans],
    )
    logger.info(
        "Return cleanup: %d reconciled, %d removed", len(report.reconciled), len(report.removed)
    )
    return report
