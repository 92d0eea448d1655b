import unittest

from sqlalchemy import select, text

import library_db.models as md
from library_db.config import Config, DevConfig, PostgresConfig, TestConfig, config_dict, get_config
from library_db.schema import TABLE_NAMES, create_tables, existing_tables
from library_db.tests.base import DatabaseTestCase
from library_db.utils import atomic_transaction, open_session, sql_compile


class UtilsTestCase(DatabaseTestCase):
    def test_atomic_transaction_rolls_back(self):
        @atomic_transaction
        def insert_then_fail(session):
            session.execute(text("INSERT INTO members (member_id) VALUES ('C101')"))
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            insert_then_fail(self.session)
        self.assertEqual(self.count(md.Member), 0)

    def test_atomic_transaction_commits(self):
        @atomic_transaction
        def insert(session):
            session.execute(text("INSERT INTO members (member_id) VALUES ('C101')"))
            return "done"

        self.assertEqual(insert(self.session), "done")
        self.assertEqual(self.count(md.Member), 1)

    def test_sqlite_foreign_keys_are_enabled(self):
        self.assertEqual(self.session.execute(text("PRAGMA foreign_keys")).scalar(), 1)

    def test_sql_compile(self):
        self.assertEqual(sql_compile("SELECT *\n   FROM books\n\n"), "SELECT *\nFROM books")
        stmt = select(md.Book.isbn).where(md.Book.status == "available")
        self.assertIn("'available'", sql_compile(stmt))

    def test_sql_compile_follows_session_dialect(self):
        stmt = select(md.Book.isbn).where(md.Book.book_title.regexp_match("^The"))
        self.assertIn("REGEXP", sql_compile(stmt, session=self.session))
        self.assertIn(" ~ ", sql_compile(stmt, dialect=PostgresConfig.DIALECT))


class ConfigTestCase(unittest.TestCase):
    def test_get_config(self):
        self.assertIs(get_config("testing"), TestConfig)
        self.assertEqual(TestConfig.SQLALCHEMY_DATABASE_URI, "sqlite:///:memory:")

    def test_dialect_matches_database_url(self):
        for config in config_dict.values():
            scheme = config.SQLALCHEMY_DATABASE_URI.split(":", 1)[0].split("+", 1)[0]
            self.assertEqual(config.DIALECT.name, scheme)
        self.assertIs(DevConfig.DIALECT, Config.DIALECT)
        self.assertFalse(hasattr(Config, "DB"))

    def test_open_session(self):
        with open_session(TestConfig) as session:
            create_tables(session)
            self.assertEqual(existing_tables(session), set(TABLE_NAMES))


if __name__ == "__main__":
    unittest.main()
