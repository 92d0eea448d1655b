from datetime import date
from enum import Enum
from typing import List, Optional

from sqlalchemy import Date, Float, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class BookStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class Base(DeclarativeBase):
    pass

    def __str__(self):
        return self.__repr__()


# Foreign keys are added after bulk loading and cleanup (see library_db.schema),
# so relationships below are joined explicitly instead of through ForeignKey().


class Branch(Base):
    __tablename__ = "branch"

    branch_id: Mapped[str] = mapped_column(String(10), primary_key=True)
    manager_id: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    branch_address: Mapped[Optional[str]] = mapped_column(String(50))
    contact_no: Mapped[Optional[str]] = mapped_column(String(15))

    manager: Mapped[Optional["Employee"]] = relationship(
        "Employee",
        primaryjoin="foreign(Branch.manager_id) == Employee.emp_id",
        viewonly=True,
    )
    employees: Mapped[List["Employee"]] = relationship(
        "Employee",
        primaryjoin="Branch.branch_id == foreign(Employee.branch_id)",
        viewonly=True,
    )

    def __repr__(self):
        return self.branch_id


class Member(Base):
    __tablename__ = "members"

    member_id: Mapped[str] = mapped_column(String(10), primary_key=True)
    member_name: Mapped[Optional[str]] = mapped_column(String(50))
    member_address: Mapped[Optional[str]] = mapped_column(String(50))
    reg_date: Mapped[Optional[date]] = mapped_column(Date)

    issues: Mapped[List["IssueRecord"]] = relationship(
        "IssueRecord",
        primaryjoin="Member.member_id == foreign(IssueRecord.issued_member_id)",
        viewonly=True,
    )

    def __repr__(self):
        return self.member_name or self.member_id


class Employee(Base):
    __tablename__ = "employees"

    emp_id: Mapped[str] = mapped_column(String(10), primary_key=True)
    emp_name: Mapped[Optional[str]] = mapped_column(String(50))
    position: Mapped[Optional[str]] = mapped_column(String(20))
    salary: Mapped[Optional[float]] = mapped_column(Float)
    branch_id: Mapped[Optional[str]] = mapped_column(String(10))

    branch: Mapped[Optional[Branch]] = relationship(
        "Branch",
        primaryjoin="foreign(Employee.branch_id) == Branch.branch_id",
        viewonly=True,
    )
    issues: Mapped[List["IssueRecord"]] = relationship(
        "IssueRecord",
        primaryjoin="Employee.emp_id == foreign(IssueRecord.issued_emp_id)",
        viewonly=True,
    )

    def __repr__(self):
        return self.emp_name or self.emp_id


class Book(Base):
    __tablename__ = "books"

    isbn: Mapped[str] = mapped_column(String(25), primary_key=True)
    book_title: Mapped[Optional[str]] = mapped_column(String(75))
    category: Mapped[Optional[str]] = mapped_column(String(20))
    rental_price: Mapped[Optional[float]] = mapped_column(Float)
    status: Mapped[Optional[str]] = mapped_column(String(15))
    author: Mapped[Optional[str]] = mapped_column(String(50))
    publisher: Mapped[Optional[str]] = mapped_column(String(50))

    issues: Mapped[List["IssueRecord"]] = relationship(
        "IssueRecord",
        primaryjoin="Book.isbn == foreign(IssueRecord.issued_book_isbn)",
        viewonly=True,
    )

    def __repr__(self):
        return self.book_title or self.isbn


class IssueRecord(Base):
    __tablename__ = "issued_status"

    issued_id: Mapped[str] = mapped_column(String(10), primary_key=True)
    issued_member_id: Mapped[Optional[str]] = mapped_column(String(10))
    issued_book_name: Mapped[Optional[str]] = mapped_column(String(75))
    issued_date: Mapped[Optional[date]] = mapped_column(Date)
    issued_book_isbn: Mapped[Optional[str]] = mapped_column(String(25))
    issued_emp_id: Mapped[Optional[str]] = mapped_column(String(10))

    member: Mapped[Optional[Member]] = relationship(
        "Member",
        primaryjoin="foreign(IssueRecord.issued_member_id) == Member.member_id",
        viewonly=True,
    )
    book: Mapped[Optional[Book]] = relationship(
        "Book",
        primaryjoin="foreign(IssueRecord.issued_book_isbn) == Book.isbn",
        viewonly=True,
    )
    issued_by: Mapped[Optional[Employee]] = relationship(
        "Employee",
        primaryjoin="foreign(IssueRecord.issued_emp_id) == Employee.emp_id",
        viewonly=True,
    )
    return_record: Mapped[Optional["ReturnRecord"]] = relationship(
        "ReturnRecord",
        primaryjoin="IssueRecord.issued_id == foreign(ReturnRecord.issued_id)",
        uselist=False,
        viewonly=True,
    )

    def __repr__(self):
        return self.issued_id


class ReturnRecord(Base):
    __tablename__ = "return_status"

    return_id: Mapped[str] = mapped_column(String(10), primary_key=True)
    issued_id: Mapped[Optional[str]] = mapped_column(String(10))
    return_book_name: Mapped[Optional[str]] = mapped_column(String(75))
    return_date: Mapped[Optional[date]] = mapped_column(Date)
    return_book_isbn: Mapped[Optional[str]] = mapped_column(String(25))

    issue: Mapped[Optional[IssueRecord]] = relationship(
        "IssueRecord",
        primaryjoin="foreign(ReturnRecord.issued_id) == IssueRecord.issued_id",
        viewonly=True,
    )
    book: Mapped[Optional[Book]] = relationship(
        "Book",
        primaryjoin="foreign(ReturnRecord.return_book_isbn) == Book.isbn",
        viewonly=True,
    )

    def __repr__(self):
        return self.return_id


TABLES = {
    model.__tablename__: model
    for model in (Branch, Member, Employee, Book, IssueRecord, ReturnRecord)
}
