CREATE_TABLES = """CREATE TABLE branch (
	branch_id VARCHAR(10) PRIMARY KEY,
	manager_id VARCHAR(10),
	branch_address VARCHAR(50),
	contact_no VARCHAR(15)
);

CREATE TABLE members (
	member_id VARCHAR(10) PRIMARY KEY,
	member_name VARCHAR(50),
	member_address VARCHAR(50),
	reg_date DATE
);

CREATE TABLE employees (
	emp_id VARCHAR(10) PRIMARY KEY,
	emp_name VARCHAR(50),
	position VARCHAR(20),
	salary FLOAT,
	branch_id VARCHAR(10)
);

CREATE TABLE books (
	isbn VARCHAR(25) PRIMARY KEY,
	book_title VARCHAR(75),
	category VARCHAR(20),
	rental_price FLOAT,
	status VARCHAR(15),
	author VARCHAR(50),
	publisher VARCHAR(50)
);

CREATE TABLE issued_status (
	issued_id VARCHAR(10) PRIMARY KEY,
	issued_member_id VARCHAR(10),
	issued_book_name VARCHAR(75),
	issued_date DATE,
	issued_book_isbn VARCHAR(25),
	issued_emp_id VARCHAR(10)
);

CREATE TABLE return_status (
	return_id VARCHAR(10) PRIMARY KEY,
	issued_id VARCHAR(10),
	return_book_name VARCHAR(75),
	return_date DATE,
	return_book_isbn VARCHAR(25)
)
"""

DROP_POSTGRES = """DROP TABLE IF EXISTS return_status;
DROP TABLE IF EXISTS issued_status;
DROP TABLE IF EXISTS books;
DROP TABLE IF EXISTS branch CASCADE;
DROP TABLE IF EXISTS employees CASCADE;
DROP TABLE IF EXISTS members
"""

# No CASCADE in SQLite: branch.manager_id is cleared first so that neither
# side of the branch/employees cycle still references the other on drop.
DROP_SQLITE = """DROP TABLE IF EXISTS return_status;
DROP TABLE IF EXISTS issued_status;
DROP TABLE IF EXISTS books;
DROP TABLE IF EXISTS employees;
DROP TABLE IF EXISTS branch;
DROP TABLE IF EXISTS members
"""

BREAK_MANAGER_CYCLE = "UPDATE branch SET manager_id = NULL WHERE manager_id IS NOT NULL"

DROP_TABLES = {
    "postgresql": DROP_POSTGRES,
    "sqlite": DROP_SQLITE,
}

ADD_CONSTRAINT = "ALTER TABLE {table} ADD {clause}"
DROP_CONSTRAINT = "ALTER TABLE {table} DROP CONSTRAINT {name}"
FOREIGN_KEY_CLAUSE = "CONSTRAINT {name} FOREIGN KEY ({column}) REFERENCES {ref_table} ({ref_column})"

SQLITE_TABLE_DDL = "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = :name"
SQLITE_COPY_ROWS = 'INSERT INTO "{target}" SELECT * FROM "{source}"'
SQLITE_DROP_TABLE = 'DROP TABLE "{table}"'
SQLITE_RENAME_TABLE = 'ALTER TABLE "{source}" RENAME TO "{target}"'
SQLITE_FOREIGN_KEY_CHECK = 'PRAGMA foreign_key_check("{table}")'

# Return rows whose issued_id matches an issue only after trimming, or whose
# title/isbn snapshot drifted from the issue they close. An exact issued_id
# match always wins over a trimmed one.
_RECONCILE_MATCH = """SELECT i.issued_id, i.issued_book_name, i.issued_book_isbn
FROM issued_status i
WHERE TRIM(i.issued_id) = TRIM(r.issued_id)
ORDER BY CASE WHEN i.issued_id = r.issued_id THEN 0 ELSE 1 END, i.issued_id
LIMIT 1"""

RECONCILE_CANDIDATES_POSTGRES = f"""SELECT r.return_id, m.issued_id, m.issued_book_name, m.issued_book_isbn
FROM return_status r
CROSS JOIN LATERAL ({_RECONCILE_MATCH}) m
WHERE r.issued_id IS DISTINCT FROM m.issued_id
   OR r.return_book_name IS DISTINCT FROM m.issued_book_name
   OR r.return_book_isbn IS DISTINCT FROM m.issued_book_isbn
ORDER BY r.return_id"""

RECONCILE_CANDIDATES_SQLITE = """SELECT r.return_id, i.issued_id, i.issued_book_name, i.issued_book_isbn
FROM return_status r
JOIN issued_status i ON i.issued_id = (
    SELECT i2.issued_id FROM issued_status i2
    WHERE TRIM(i2.issued_id) = TRIM(r.issued_id)
    ORDER BY CASE WHEN i2.issued_id = r.issued_id THEN 0 ELSE 1 END, i2.issued_id
    LIMIT 1
)
WHERE r.issued_id IS NOT i.issued_id
   OR r.return_book_name IS NOT i.issued_book_name
   OR r.return_book_isbn IS NOT i.issued_book_isbn
ORDER BY r.return_id"""

RECONCILE_CANDIDATES = {
    "postgresql": RECONCILE_CANDIDATES_POSTGRES,
    "sqlite": RECONCILE_CANDIDATES_SQLITE,
}

RECONCILE_RETURN = """UPDATE return_status
SET issued_id = :issued_id,
    return_book_name = :issued_book_name,
    return_book_isbn = :issued_book_isbn
WHERE return_id = :return_id"""

ORPHANED_RETURNS = """SELECT return_id, issued_id, return_book_name, return_date, return_book_isbn
FROM return_status
WHERE issued_id IS NULL
   OR issued_id NOT IN (SELECT issued_id FROM issued_status)
ORDER BY return_id"""

DELETE_ORPHANED_RETURNS = """DELETE FROM return_status
WHERE issued_id IS NULL
   OR issued_id NOT IN (SELECT issued_id FROM issued_status)"""

RENAME_MEMBER_PREFIX = """UPDATE members
SET member_id = :new_prefix || SUBSTR(member_id, :prefix_length + 1)
WHERE SUBSTR(member_id, 1, :prefix_length) = :old_prefix"""

RENAME_ISSUED_MEMBER_PREFIX = """UPDATE issued_status
SET issued_member_id = :new_prefix || SUBSTR(issued_member_id, :prefix_length + 1)
WHERE SUBSTR(issued_member_id, 1, :prefix_length) = :old_prefix"""

REFRESH_BOOK_STATUS = """UPDATE books
SET status = CASE
    WHEN isbn IN (SELECT return_book_isbn FROM return_status) THEN 'available'
    ELSE 'unavailable'
END"""

COUNT_BOOK_STATUS = "SELECT status, COUNT(*) AS count FROM books GROUP BY status"

ASSIGN_BRANCH_MANAGER = "UPDATE branch SET manager_id = :emp_id WHERE branch_id = :branch_id"

PROMOTE_EMPLOYEE = """UPDATE employees
SET position = 'Manager',
    salary = COALESCE(salary, 0) + :raise_amount,
    branch_id = :branch_id
WHERE emp_id = :emp_id"""
