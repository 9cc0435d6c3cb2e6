"""Models package"""
from app.models.spreadsheet import SheetTable, SpreadsheetDocument
from app.models.analysis import AnalysisRequest, AnalysisResponse, Prompt, HealthResponse

__all__ = [
    "SheetTable",
    "SpreadsheetDocument",
    "AnalysisRequest",
    "AnalysisResponse",
    "Prompt",
    "HealthResponse",
]
