"""
Tests for the fetch -> compose -> complete pipeline
"""

import pytest
from unittest.mock import AsyncMock, Mock

from app.core.exceptions import CompletionError
from app.models.analysis import AnalysisRequest
from app.models.spreadsheet import SheetTable, SpreadsheetDocument
from app.services.analysis_service import AnalysisPipeline
from app.services.prompt_service import PromptComposer


@pytest.fixture
def document():
    return SpreadsheetDocument(spreadsheet_id="X", sheets=[
        SheetTable.from_values("Daily", [["Date", "Sales"], ["2024-01-01", "10"], ["2024-01-02", "14"]]),
    ])


@pytest.fixture
def pipeline(document):
    sheets_service = Mock()
    sheets_service.fetch = AsyncMock(return_value=document)
    completion_service = Mock()
    completion_service.complete = AsyncMock(return_value="Sales grew 40%.")
    return AnalysisPipeline(sheets_service, PromptComposer(), completion_service)


class TestAnalysisPipeline:
    """Test one pipeline run per request"""

    @pytest.mark.asyncio
    async def test_run(self, pipeline):
        response = await pipeline.run(AnalysisRequest(spreadsheetId="X", content="What's the trend?"))

        assert response.role == "assistant"
        assert response.content == "Sales grew 40%."
        pipeline.sheets_service.fetch.assert_awaited_once_with("X")

        system_text, user_text = pipeline.completion_service.complete.await_args.args
        assert '"Sales": "14"' in system_text
        assert user_text == "What's the trend?"

    @pytest.mark.asyncio
    async def test_fetches_once_per_run(self, pipeline):
        request = AnalysisRequest(spreadsheetId="X", content="What's the trend?")

        await pipeline.run(request)
        await pipeline.run(request)

        assert pipeline.sheets_service.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_without_spreadsheet_uses_empty_context(self, pipeline):
        await pipeline.run(AnalysisRequest(content="Hi"))

        pipeline.sheets_service.fetch.assert_not_awaited()
        system_text = pipeline.completion_service.complete.await_args.args[0]
        assert "spreadsheet data: {}" in system_text

    @pytest.mark.asyncio
    async def test_completion_error_propagates(self, pipeline):
        pipeline.completion_service.complete.side_effect = CompletionError("quota exceeded")

        with pytest.raises(CompletionError):
            await pipeline.run(AnalysisRequest(spreadsheetId="X", content="Q"))
