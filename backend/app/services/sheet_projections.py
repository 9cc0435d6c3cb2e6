"""
Sheet projections - choose what part of a spreadsheet is embedded in the prompt
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.models.spreadsheet import SpreadsheetDocument

logger = logging.getLogger(__name__)


ANALYST_PERSONA = (
    "You are an AI analyst specialized in analyzing spreadsheet data and providing insights."
)

ANALYST_DIRECTIVES = """Please analyze this data and provide insights based on the user's question.
Consider:
1. Trends and patterns in the data
2. Key metrics and their relationships
3. Potential forecasts based on historical data
4. Any anomalies or interesting findings

Format your response in a clear, structured way with sections for:
- Summary of findings
- Detailed analysis
- Recommendations (if applicable)
- Data limitations or caveats"""

METRICS_PERSONA = (
    "You are a performance analyst. You review daily metric series exported from a "
    "spreadsheet and explain what changed and why it matters."
)

METRICS_DIRECTIVES = """Answer the user's question using only the metric series above.
Cover briefly:
1. Trend of each metric over the date range
2. Comparison between the two metrics
3. Days that stand out as anomalies
4. Concrete recommendations

Keep the answer short and cite dates and values."""


class SheetProjection:
    """
    Strategy that turns a SpreadsheetDocument into JSON-serializable prompt data

    Subclasses set the persona and directives used around the data and may
    lower the completion length bound.
    """

    name = "base"
    persona = ANALYST_PERSONA
    directives = ANALYST_DIRECTIVES
    max_tokens: Optional[int] = None

    def empty(self) -> Any:
        return {}

    def project(self, document: SpreadsheetDocument) -> Any:
        raise NotImplementedError


class RowRecordsProjection(SheetProjection):
    """One object per data row keyed by the sheet's header row"""

    name = "rows"

    def project(self, document: SpreadsheetDocument) -> Dict[str, Dict]:
        return {
            sheet.title: {
                "title": sheet.title,
                "headers": [h for h in sheet.headers if h.strip() and not h.startswith("_")],
                "rows": sheet.records(),
            }
            for sheet in document.sheets
        }


class CellGridProjection(SheetProjection):
    """Raw grid of formatted cell values per sheet"""

    name = "grid"

    def project(self, document: SpreadsheetDocument) -> Dict[str, Dict]:
        return {
            sheet.title: {
                "title": sheet.title,
                "rowCount": sheet.row_count,
                "columnCount": sheet.column_count,
                "values": sheet.values,
            }
            for sheet in document.sheets
        }


@dataclass(frozen=True)
class MetricColumn:
    """Output key plus where to find the column: header name first, positional index otherwise"""
    name: str
    index: int
    header: Optional[str] = None

    def resolve(self, headers: List[str]) -> int:
        if self.header:
            wanted = self.header.strip().lower()
            for idx, header in enumerate(headers):
                if header.strip().lower() == wanted:
                    return idx
            logger.warning(
                f"Header '{self.header}' not found, using column {self.index} for '{self.name}'"
            )
        return self.index


def to_float(value: Any) -> float:
    """Coerce a formatted cell to float. Blank, invalid or non-finite values become 0.0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "").rstrip("%").strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0


class MetricsProjection(SheetProjection):
    """
    Date plus two numeric metrics extracted from a single known sheet

    Rows without a date, or where both metrics are zero, are dropped.

    With purely positional columns the first row is treated as data unless
    header_row is set. A header row is then only dropped because its labels do
    not parse as numbers; labels such as "2023" would be read as a record.
    Configuring any column by header name, or header_row=True, always skips
    the first row.
    """

    name = "metrics"
    persona = METRICS_PERSONA
    directives = METRICS_DIRECTIVES

    def __init__(
        self,
        sheet_title: str,
        date: MetricColumn,
        primary: MetricColumn,
        secondary: MetricColumn,
        max_tokens: Optional[int] = 500,
        header_row: bool = False
    ):
        self.sheet_title = sheet_title
        self.date = date
        self.primary = primary
        self.secondary = secondary
        self.max_tokens = max_tokens
        self.header_row = header_row

    def empty(self) -> List:
        return []

    def project(self, document: SpreadsheetDocument) -> List[Dict[str, Any]]:
        sheet = document.get_sheet(self.sheet_title)
        if sheet is None:
            logger.warning(f"Sheet '{self.sheet_title}' not found in {document.spreadsheet_id}")
            return []
        return self.project_rows(sheet.values)

    def project_rows(self, rows: List[List[str]]) -> List[Dict[str, Any]]:
        if not rows:
            return []

        headers = rows[0]
        columns = [self.date, self.primary, self.secondary]
        date_idx, primary_idx, secondary_idx = (c.resolve(headers) for c in columns)

        skip_header = self.header_row or any(c.header for c in columns)
        body = rows[1:] if skip_header else rows

        records = []
        for row in body:
            date = _cell(row, date_idx).strip()
            primary = to_float(_cell(row, primary_idx))
            secondary = to_float(_cell(row, secondary_idx))
            if not date or (primary == 0.0 and secondary == 0.0):
                continue
            records.append({
                self.date.name: date,
                self.primary.name: primary,
                self.secondary.name: secondary,
            })
        return records


def _cell(row: List[str], idx: int) -> str:
    if 0 <= idx < len(row):
        return row[idx] or ""
    return ""


def build_projection(settings) -> SheetProjection:
    """Projection selected by SHEET_PROJECTION"""
    if settings.SHEET_PROJECTION == "grid":
        return CellGridProjection()
    if settings.SHEET_PROJECTION == "metrics":
        return MetricsProjection(
            sheet_title=settings.METRICS_SHEET_TITLE,
            date=MetricColumn("date", settings.METRICS_DATE_COLUMN, settings.METRICS_DATE_HEADER),
            primary=MetricColumn(
                settings.METRICS_PRIMARY_NAME,
                settings.METRICS_PRIMARY_COLUMN,
                settings.METRICS_PRIMARY_HEADER
            ),
            secondary=MetricColumn(
                settings.METRICS_SECONDARY_NAME,
                settings.METRICS_SECONDARY_COLUMN,
                settings.METRICS_SECONDARY_HEADER
            ),
            max_tokens=settings.METRICS_MAX_TOKENS,
            header_row=settings.METRICS_HEADER_ROW,
        )
    return RowRecordsProjection()
