"""
Spreadsheet data model
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class SheetTable(BaseModel):
    """One tab of a spreadsheet as a dense grid of formatted cell values"""

    title: str
    row_count: int = 0
    column_count: int = 0
    values: List[List[str]] = Field(default_factory=list)

    @classmethod
    def from_values(cls, title: str, values: List[List]) -> "SheetTable":
        """
        Normalize raw API values into a dense grid

        Rows where every cell is empty are dropped and short rows are
        padded with empty strings up to the widest row.
        """
        rows = [
            ["" if cell is None else str(cell) for cell in row]
            for row in values or []
        ]
        rows = [row for row in rows if any(cell.strip() for cell in row)]
        width = max((len(row) for row in rows), default=0)
        grid = [row + [""] * (width - len(row)) for row in rows]
        return cls(title=title, row_count=len(grid), column_count=width, values=grid)

    @property
    def headers(self) -> List[str]:
        return list(self.values[0]) if self.values else []

    def records(self) -> List[Dict[str, str]]:
        """Rows after the first keyed by header. Blank and '_'-prefixed headers are internal."""
        headers = self.headers
        keep = [
            (idx, header) for idx, header in enumerate(headers)
            if header.strip() and not header.startswith("_")
        ]
        return [
            {header: row[idx] for idx, header in keep}
            for row in self.values[1:]
        ]


class SpreadsheetDocument(BaseModel):
    """Every sheet of one spreadsheet, in tab order. Fetched per request, never cached."""

    spreadsheet_id: str
    title: str = ""
    sheets: List[SheetTable] = Field(default_factory=list)

    def get_sheet(self, title: str) -> Optional[SheetTable]:
        for sheet in self.sheets:
            if sheet.title == title:
                return sheet
        return None
