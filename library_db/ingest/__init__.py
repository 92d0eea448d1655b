import csv
import logging
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy import insert

import library_db.models as md
from library_db.p_models import ROW_SCHEMAS
from library_db.utils import LibraryDBError, RowValidationError, atomic_transaction

logger = logging.getLogger(__name__)

# Any order works while the tables are unconstrained; this one also
# satisfies the foreign keys apart from the branch manager back-reference.
LOAD_ORDER = ("branch", "members", "employees", "books", "issued_status", "return_status")


def validate_rows(table, rows):
    try:
        schema = ROW_SCHEMAS[table]
    except KeyError:
        raise LibraryDBError(f"Unknown table: {table}") from None

    validated = []
    for index, row in enumerate(rows):
        try:
            validated.append(schema.model_validate(row).model_dump())
        except ValidationError as e:
            raise RowValidationError(table, index, e.errors()) from e
    return validated


@atomic_transaction
def load_rows(session, table, rows):
    """
    Bulk insert rows (mappings keyed by column name) into ``table``.

    Rows are checked against the table's field list only; referential
    integrity is left to the constraints applied after cleanup.
    """
    validated = validate_rows(table, rows)
    if not validated:
        return 0
    session.execute(insert(md.TABLES[table]), validated)
    logger.info("Loaded %d rows into %s", len(validated), table)
    return len(validated)


def read_csv(path):
    """Read a CSV export of a source sheet; the header row names the columns."""
    with open(Path(path), newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        return [
            {key.strip(): value for key, value in row.items() if key is not None}
            for row in reader
        ]


def load_csv(session, table, path):
    return load_rows(session, table, read_csv(path))


def load_dataset(session, dataset):
    """Load a mapping of table name -> rows, in LOAD_ORDER. Returns counts per table."""
    unknown = set(dataset) - set(LOAD_ORDER)
    if unknown:
        raise LibraryDBError(f"Unknown tables: {', '.join(sorted(unknown))}")
    return {table: load_rows(session, table, dataset[table]) for table in LOAD_ORDER if table in dataset}
