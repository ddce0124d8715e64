"""
CSV export service
Builds the roster CSV body sent to the user as a document
"""

import io
import logging
from typing import List

from commission_bot.services.roster import EmployeeRow

logger = logging.getLogger(__name__)

CSV_HEADER = "name,sales,target"


def _cell(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def rows_to_csv(rows: List[EmployeeRow]) -> str:
    """
    Render rows as CSV text

    Values are joined with commas as-is, names are not quoted. The
    header line always ends with a newline, so an empty roster is just
    the header and a line break.
    """
    lines = []
    for row in rows:
        if "," in row.name or "\n" in row.name:
            logger.warning(f"Employee name {row.name!r} contains a separator, CSV columns will shift")
        lines.append(",".join([row.name, _cell(row.sales), _cell(row.target)]))
    return CSV_HEADER + "\n" + "\n".join(lines)


def csv_document(rows: List[EmployeeRow], filename: str) -> io.BytesIO:
    """CSV text as an in-memory file ready for send_document"""
    document = io.BytesIO(rows_to_csv(rows).encode("utf-8"))
    document.name = filename
    return document
