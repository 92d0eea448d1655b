import logging

from sqlalchemy import select, text

import library_db.models as md
from library_db import sql
from library_db.models import BookStatus
from library_db.p_models import StatusReport
from library_db.utils import RecordNotFoundError, atomic_transaction

logger = logging.getLogger(__name__)


@atomic_transaction
def refresh_book_status(session) -> StatusReport:
    """
    Recompute books.status in one sweep: 'available' when the isbn appears in
    any return record, 'unavailable' otherwise.

    Known limitation: issue history is not consulted, so a book that was
    returned once and issued again afterwards still reads 'available'.
    """
    session.execute(text(sql.REFRESH_BOOK_STATUS))
    counts = dict(session.execute(text(sql.COUNT_BOOK_STATUS)).all())
    report = StatusReport(
        available=counts.get(BookStatus.AVAILABLE.value, 0),
        unavailable=counts.get(BookStatus.UNAVAILABLE.value, 0),
    )
    logger.info("Book status refreshed: %s", report.model_dump())
    return report


@atomic_transaction
def assign_manager(session, branch_id, emp_id, raise_amount=5000.0):
    """
    Make ``emp_id`` the manager of ``branch_id``: the branch points at the
    employee, and the employee is promoted, given a raise and moved to that
    branch, all in one transaction.
    """
    if session.get(md.Branch, branch_id) is None:
        raise RecordNotFoundError(f"Branch {branch_id} not found")
    if session.get(md.Employee, emp_id) is None:
        raise RecordNotFoundError(f"Employee {emp_id} not found")

    params = {"branch_id": branch_id, "emp_id": emp_id, "raise_amount": raise_amount}
    session.execute(text(sql.ASSIGN_BRANCH_MANAGER), params)
    session.execute(text(sql.PROMOTE_EMPLOYEE), params)
    session.expire_all()

    employee = session.execute(select(md.Employee).where(md.Employee.emp_id == emp_id)).scalar_one()
    logger.info(
        "Assigned %s (%s) as manager of branch %s, salary now %.2f",
        employee.emp_name,
        emp_id,
        branch_id,
        employee.salary,
    )
    return employee
