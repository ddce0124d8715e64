"""
Roster service
Pure operations over the ordered list of employee rows
"""

import uuid
from dataclasses import dataclass, replace
from typing import List

EDITABLE_FIELDS = ("name", "sales", "target")


@dataclass(frozen=True)
class EmployeeRow:
    id: str
    name: str
    sales: float = 0.0
    target: float = 0.0


def default_name(position: int) -> str:
    """Display name for the row at a 1-based position"""
    return f"Employee {position}"


def new_row(position: int, target: float = 0.0) -> EmployeeRow:
    """Create a default row with a fresh id"""
    return EmployeeRow(id=uuid.uuid4().hex, name=default_name(position), target=target)


def resize_rows(rows: List[EmployeeRow], count: int) -> List[EmployeeRow]:
    """
    Resize the roster to the employee count

    Existing rows are kept by position, growth appends default rows,
    shrinkage truncates from the end.
    """
    if not count or count <= 0:
        return []

    resized = list(rows[:count])
    for position in range(len(resized) + 1, count + 1):
        resized.append(new_row(position))
    return resized


def add_row(rows: List[EmployeeRow], target: float = 0.0) -> List[EmployeeRow]:
    """Append a default row"""
    return list(rows) + [new_row(len(rows) + 1, target)]


def remove_row(rows: List[EmployeeRow], row_id: str) -> List[EmployeeRow]:
    """Drop the row with the given id"""
    return [row for row in rows if row.id != row_id]


def find_row(rows: List[EmployeeRow], row_id: str):
    for position, row in enumerate(rows, start=1):
        if row.id == row_id:
            return position, row
    return None, None


def update_row(rows: List[EmployeeRow], row_id: str, field_name: str, value) -> List[EmployeeRow]:
    """
    Replace one field of the row with the given id

    Raises:
        ValueError: if field_name is not name, sales or target
    """
    if field_name not in EDITABLE_FIELDS:
        raise ValueError(f"Unknown row field: {field_name}")
    return [replace(row, **{field_name: value}) if row.id == row_id else row for row in rows]


def distribute_equally(rows: List[EmployeeRow], per_employee: float) -> List[EmployeeRow]:
    """Set every row's target to the same value, sales and names untouched"""
    return [replace(row, target=per_employee) for row in rows]
