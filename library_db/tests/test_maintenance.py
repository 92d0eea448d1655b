import unittest
from datetime import date

from sqlalchemy import select

import library_db.models as md
from library_db.maintenance import assign_manager, refresh_book_status
from library_db.schema import apply_constraints
from library_db.tests.base import ISBN, DatabaseTestCase, fake, minimal_dataset
from library_db.utils import RecordNotFoundError


class RefreshBookStatusTestCase(DatabaseTestCase):
    def statuses(self):
        self.session.expire_all()
        return {book.isbn: book.status for book in self.session.scalars(select(md.Book)).all()}

    def test_only_returned_books_become_available(self):
        dataset = minimal_dataset()
        dataset["books"] += [
            self.book("978-0-330-25864-8", "Animal Farm", status="available"),
            self.book("978-0-14-118776-1", status=None),
        ]
        dataset["issued_status"].append(
            {
                "issued_id": "IS102",
                "issued_member_id": "C101",
                "issued_book_name": "Animal Farm",
                "issued_date": date(2024, 3, 3),
                "issued_book_isbn": "978-0-330-25864-8",
                "issued_emp_id": "E101",
            }
        )
        self.load(dataset)
        apply_constraints(self.session)

        report = refresh_book_status(self.session)

        self.assertEqual(report.available, 1)
        self.assertEqual(report.unavailable, 2)
        self.assertEqual(
            self.statuses(),
            {
                ISBN: md.BookStatus.AVAILABLE.value,
                "978-0-330-25864-8": md.BookStatus.UNAVAILABLE.value,
                "978-0-14-118776-1": md.BookStatus.UNAVAILABLE.value,
            },
        )

    def test_reissued_book_still_reads_available(self):
        # Known limitation: a later issue does not override an earlier return.
        dataset = minimal_dataset()
        dataset["issued_status"].append(
            {
                "issued_id": "IS102",
                "issued_member_id": "C101",
                "issued_book_name": "The Catcher in the Rye",
                "issued_date": date(2024, 7, 1),
                "issued_book_isbn": ISBN,
                "issued_emp_id": "E101",
            }
        )
        self.load(dataset)

        refresh_book_status(self.session)

        self.assertEqual(self.statuses()[ISBN], md.BookStatus.AVAILABLE.value)

    def test_no_returns(self):
        dataset = minimal_dataset()
        dataset["return_status"] = []
        self.load(dataset)

        report = refresh_book_status(self.session)

        self.assertEqual(report.available, 0)
        self.assertEqual(report.unavailable, 1)


class AssignManagerTestCase(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        dataset = minimal_dataset()
        dataset["branch"].append(
            {"branch_id": "B002", "manager_id": None, "branch_address": fake.city()}
        )
        dataset["employees"].append(
            {
                "emp_id": "E111",
                "emp_name": fake.name(),
                "position": "Assistant",
                "salary": 40000.0,
                "branch_id": "B002",
            }
        )
        self.load(dataset)
        apply_constraints(self.session)

    def test_promotes_employee_to_manager(self):
        employee = assign_manager(self.session, "B001", "E111")

        self.assertEqual(employee.position, "Manager")
        self.assertEqual(employee.salary, 45000.0)
        self.assertEqual(employee.branch_id, "B001")
        branch = self.session.get(md.Branch, "B001")
        self.assertEqual(branch.manager_id, "E111")
        self.assertEqual(branch.manager.emp_name, employee.emp_name)

    def test_unknown_branch_or_employee(self):
        with self.assertRaises(RecordNotFoundError):
            assign_manager(self.session, "B999", "E111")
        with self.assertRaises(RecordNotFoundError):
            assign_manager(self.session, "B001", "E999")
        self.assertEqual(self.session.get(md.Branch, "B001").manager_id, "E101")


if __name__ == "__main__":
    unittest.main()
