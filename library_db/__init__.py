import logging

from library_db.cleanup import clean_return_records
from library_db.ingest import load_dataset
from library_db.p_models import BuildReport
from library_db.schema import apply_constraints, create_tables

logger = logging.getLogger(__name__)

__version__ = "0.1.0"


def build_database(session, dataset) -> BuildReport:
    """
    Full setup: recreate the tables, bulk load ``dataset`` (table name ->
    rows), reconcile return records, then apply every foreign key.

    A ConstraintViolationError from the last step is fatal and propagates.
    """
    create_tables(session)
    loaded = load_dataset(session, dataset)
    cleanup = clean_return_records(session)
    constraints = apply_constraints(session)
    report = BuildReport(loaded=loaded, cleanup=cleanup, constraints=constraints)
    logger.info("Database built: %s rows loaded, %d constraints applied", loaded, len(constraints))
    return report
