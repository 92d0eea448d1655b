from datetime import date, timedelta

from faker import Faker

from library_db import build_database
from library_db.maintenance import refresh_book_status
from library_db.utils import open_session, setup_logging

POSITIONS = ("Librarian", "Assistant", "Clerk")

ISSUE_FIELDS = (
    "issued_id",
    "issued_member_id",
    "issued_book_name",
    "issued_date",
    "issued_book_isbn",
    "issued_emp_id",
)
RETURN_FIELDS = ("return_id", "issued_id", "return_book_name", "return_date", "return_book_isbn")

# Titles and isbns referenced by the issue/return events below.
CATALOGUE = (
    ("978-0-553-29698-2", "The Catcher in the Rye", "J.D. Salinger", "Classic"),
    ("978-0-330-25864-8", "Animal Farm", "George Orwell", "Classic"),
    ("978-0-14-118776-1", "One Hundred Years of Solitude", "Gabriel Garcia Marquez", "Fiction"),
    ("978-0-525-47535-5", "The Great Gatsby", "F. Scott Fitzgerald", "Classic"),
    ("978-0-141-44171-6", "Jane Eyre", "Charlotte Bronte", "Classic"),
    ("978-0-307-37840-1", "The Alchemist", "Paulo Coelho", "Fiction"),
    ("978-0-14-143951-8", "Pride and Prejudice", "Jane Austen", "Classic"),
    ("978-0-452-28423-4", "1984", "George Orwell", "Dystopian"),
)

ISSUES = (
    ("IS101", "C101", "The Catcher in the Rye", date(2024, 3, 1), "978-0-553-29698-2", "E101"),
    ("IS102", "C102", "Animal Farm", date(2024, 3, 3), "978-0-330-25864-8", "E101"),
    ("IS103", "C103", "One Hundred Years of Solitude", date(2024, 3, 5), "978-0-14-118776-1", "E102"),
    ("IS104", "C104", "The Great Gatsby", date(2024, 3, 7), "978-0-525-47535-5", "E103"),
    ("IS105", "C105", "Jane Eyre", date(2024, 3, 9), "978-0-141-44171-6", "E103"),
    ("IS106", "C106", "1984", date(2024, 3, 11), "978-0-452-28423-4", "E104"),
)

# RS119/RS120 carry a snapshot that drifted from their issue, RS121 and RS122
# cannot be matched to any issue, RS123 only matches once padding is trimmed.
RETURNS = (
    ("RS101", "IS101", "The Catcher in the Rye", date(2024, 6, 15), "978-0-553-29698-2"),
    ("RS102", "IS102", "Animal Farm", date(2024, 6, 18), "978-0-330-25864-8"),
    ("RS103", "IS103", "One Hundred Years of Solitude", date(2024, 6, 20), "978-0-14-118776-1"),
    ("RS119", "IS104", "The Alchemist", date(2023, 6, 7), "978-0-307-37840-1"),
    ("RS120", "IS105", "Pride and Prejudice", date(2023, 6, 7), "978-0-14-143951-8"),
    ("RS121", None, "Animal Farm", date(2024, 7, 1), "978-0-330-25864-8"),
    ("RS122", "IS999", "The Great Gatsby", date(2024, 7, 2), "978-0-525-47535-5"),
    ("RS123", " IS106 ", "1984", date(2024, 7, 3), "978-0-452-28423-4"),
)


def seed_dataset(seed=2024, branches=5, employees=11, members=10):
    """
    Rows for every table, keyed by table name, ready for build_database.

    Branch B00n is managed by employee E10n; ids follow the C1xx member
    scheme that normalize_member_ids rewrites.
    """
    fake = Faker()
    Faker.seed(seed)

    branch_ids = [f"B{i:03d}" for i in range(1, branches + 1)]
    emp_ids = [f"E{100 + i}" for i in range(1, employees + 1)]

    dataset = {
        "branch": [
            {
                "branch_id": branch_id,
                "manager_id": emp_ids[i],
                "branch_address": fake.street_address()[:50],
                "contact_no": f"+2547{fake.random_number(digits=8, fix_len=True)}",
            }
            for i, branch_id in enumerate(branch_ids)
        ],
        "employees": [
            {
                "emp_id": emp_id,
                "emp_name": fake.name()[:50],
                "position": "Manager" if i < branches else fake.random_element(POSITIONS),
                "salary": float(fake.random_int(min=40000, max=65000, step=500)),
                "branch_id": branch_ids[i % branches],
            }
            for i, emp_id in enumerate(emp_ids)
        ],
        "members": [
            {
                "member_id": f"C{100 + i}",
                "member_name": fake.name()[:50],
                "member_address": fake.street_address()[:50],
                "reg_date": date(2023, 1, 1) + timedelta(days=fake.random_int(min=0, max=420)),
            }
            for i in range(1, members + 1)
        ],
        "books": [
            {
                "isbn": isbn,
                "book_title": title,
                "category": category,
                "rental_price": float(fake.random_int(min=4, max=9)) + 0.5,
                "status": "yes",
                "author": author,
                "publisher": fake.company()[:50],
            }
            for isbn, title, author, category in CATALOGUE
        ],
        "issued_status": [dict(zip(ISSUE_FIELDS, row)) for row in ISSUES],
        "return_status": [dict(zip(RETURN_FIELDS, row)) for row in RETURNS],
    }
    return dataset


if __name__ == "__main__":
    setup_logging()
    with open_session() as session:
        build_database(session, seed_dataset())
        refresh_book_status(session)
