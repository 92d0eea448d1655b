import os
import tempfile
import unittest
from datetime import date

import library_db.models as md
from library_db.ingest import load_csv, load_dataset, load_rows, read_csv
from library_db.tests.base import DatabaseTestCase, fake, minimal_dataset
from library_db.utils import LibraryDBError, RowValidationError

BOOKS_CSV = """isbn,book_title,category,rental_price,status,author,publisher
978-0-553-29698-2,The Catcher in the Rye,Classic,7.00,yes,J.D. Salinger,Penguin Books
978-0-330-25864-8,Animal Farm,Classic,5.50,,George Orwell,
"""


class IngestTestCase(DatabaseTestCase):
    def test_load_rows_coerces_types(self):
        count = load_rows(
            self.session,
            "members",
            [
                {"member_id": "C101", "member_name": fake.name(), "reg_date": "2021-05-15"},
                {"member_id": "C102", "member_name": fake.name(), "reg_date": date(2021, 6, 20)},
            ],
        )
        self.assertEqual(count, 2)
        self.assertEqual(self.session.get(md.Member, "C101").reg_date, date(2021, 5, 15))

        load_rows(self.session, "employees", [{"emp_id": "E101", "salary": "50000"}])
        self.assertEqual(self.session.get(md.Employee, "E101").salary, 50000.0)

    def test_unknown_field_is_rejected(self):
        rows = [
            {"member_id": "C101", "member_name": fake.name()},
            {"member_id": "C102", "member_name": fake.name(), "email": fake.email()},
        ]
        with self.assertRaises(RowValidationError) as cm:
            load_rows(self.session, "members", rows)

        self.assertEqual(cm.exception.table, "members")
        self.assertEqual(cm.exception.index, 1)
        self.assertEqual(self.count(md.Member), 0)

    def test_missing_identifier_is_rejected(self):
        with self.assertRaises(RowValidationError):
            load_rows(self.session, "books", [{"book_title": fake.sentence(3)}])

    def test_unknown_table(self):
        with self.assertRaises(LibraryDBError):
            load_rows(self.session, "fines", [{"id": 1}])
        with self.assertRaises(LibraryDBError):
            load_dataset(self.session, {"fines": []})

    def test_load_dataset(self):
        counts = load_dataset(self.session, minimal_dataset())
        self.assertEqual(
            counts,
            {
                "branch": 1,
                "members": 1,
                "employees": 1,
                "books": 1,
                "issued_status": 1,
                "return_status": 1,
            },
        )

    def test_load_csv(self):
        handle, path = tempfile.mkstemp(suffix=".csv")
        with os.fdopen(handle, "w", encoding="utf-8") as csvfile:
            csvfile.write(BOOKS_CSV)
        self.addCleanup(os.remove, path)

        rows = read_csv(path)
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[1]["status"], "")

        self.assertEqual(load_csv(self.session, "books", path), 2)
        book = self.session.get(md.Book, "978-0-330-25864-8")
        self.assertEqual(book.rental_price, 5.5)
        self.assertIsNone(book.status)
        self.assertIsNone(book.publisher)


if __name__ == "__main__":
    unittest.main()
