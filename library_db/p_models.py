from datetime import date
from typing import Optional

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, field_validator


class BaseModel(PydanticBaseModel):
    model_config = ConfigDict(from_attributes=True)


class RowSchema(BaseModel):
    """Shape of one ingested row: the container's field list and nothing else."""

    model_config = ConfigDict(from_attributes=True, extra="forbid")

    @field_validator("*", mode="before")
    @classmethod
    def empty_cell_to_none(cls, value):
        if isinstance(value, str) and value == "":
            return None
        return value


class BranchRow(RowSchema):
    branch_id: str
    manager_id: Optional[str] = None
    branch_address: Optional[str] = None
    contact_no: Optional[str] = None


class MemberRow(RowSchema):
    member_id: str
    member_name: Optional[str] = None
    member_address: Optional[str] = None
    reg_date: Optional[date] = None


class EmployeeRow(RowSchema):
    emp_id: str
    emp_name: Optional[str] = None
    position: Optional[str] = None
    salary: Optional[float] = None
    branch_id: Optional[str] = None


class BookRow(RowSchema):
    isbn: str
    book_title: Optional[str] = None
    category: Optional[str] = None
    rental_price: Optional[float] = None
    status: Optional[str] = None
    author: Optional[str] = None
    publisher: Optional[str] = None


class IssueRow(RowSchema):
    issued_id: str
    issued_member_id: Optional[str] = None
    issued_book_name: Optional[str] = None
    issued_date: Optional[date] = None
    issued_book_isbn: Optional[str] = None
    issued_emp_id: Optional[str] = None


class ReturnRow(RowSchema):
    return_id: str
    issued_id: Optional[str] = None
    return_book_name: Optional[str] = None
    return_date: Optional[date] = None
    return_book_isbn: Optional[str] = None


ROW_SCHEMAS: dict[str, type[RowSchema]] = {
    "branch": BranchRow,
    "members": MemberRow,
    "employees": EmployeeRow,
    "books": BookRow,
    "issued_status": IssueRow,
    "return_status": ReturnRow,
}


class CleanupReport(BaseModel):
    reconciled: list[str] = []
    removed: list[ReturnRow] = []

    @property
    def changed(self) -> bool:
        return bool(self.reconciled or self.removed)


class NormalizationReport(BaseModel):
    old_prefix: str
    new_prefix: str
    members: int
    issues: int
    constraint_suspended: bool = False


class StatusReport(BaseModel):
    available: int = 0
    unavailable: int = 0


class BuildReport(BaseModel):
    loaded: dict[str, int]
    cleanup: CleanupReport
    constraints: list[str]
