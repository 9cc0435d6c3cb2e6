"""
Tests for prompt composition
"""

import json
import pytest
from unittest.mock import Mock

from app.models.spreadsheet import SheetTable, SpreadsheetDocument
from app.services.prompt_service import PromptComposer
from app.services.sheet_projections import MetricColumn, MetricsProjection, SheetProjection


@pytest.fixture
def document():
    return SpreadsheetDocument(spreadsheet_id="X", sheets=[
        SheetTable.from_values("Daily", [["Date", "Sales"], ["2024-01-01", "10"], ["2024-01-02", "14"]]),
    ])


class TestPromptComposer:
    """Test system/user prompt assembly"""

    def test_compose_embeds_data_and_directives(self, document):
        prompt = PromptComposer().compose(document, "What's the trend?")

        assert prompt.user_text == "What's the trend?"
        assert prompt.system_text.startswith("You are an AI analyst")
        assert '"Sales": "14"' in prompt.system_text
        assert "Trends and patterns in the data" in prompt.system_text
        assert "Recommendations (if applicable)" in prompt.system_text
        assert prompt.max_tokens is None

    def test_compose_without_document(self):
        prompt = PromptComposer().compose(None, "Hello")

        assert "You have access to the following spreadsheet data: {}" in prompt.system_text
        assert prompt.user_text == "Hello"

    def test_projection_failure_falls_back_to_empty(self, document):
        projection = Mock(spec=SheetProjection)
        projection.name = "broken"
        projection.persona = "Persona."
        projection.directives = "Directives."
        projection.max_tokens = None
        projection.project.side_effect = ValueError("bad layout")
        projection.empty.return_value = []

        prompt = PromptComposer(projection).compose(document, "Q")

        assert "spreadsheet data: []" in prompt.system_text

    def test_metrics_prompt(self):
        document = SpreadsheetDocument(spreadsheet_id="X", sheets=[
            SheetTable.from_values("Metrics", [["2024-01-01", "", "", "0.5", "", "0.1"]]),
        ])
        projection = MetricsProjection(
            "Metrics",
            MetricColumn("date", 0),
            MetricColumn("metricA", 3),
            MetricColumn("metricB", 5),
            max_tokens=500
        )

        prompt = PromptComposer(projection).compose(document, "How are we doing?")

        data = prompt.system_text.split("spreadsheet data: ", 1)[1].split("\n\n", 1)[0]
        assert json.loads(data) == [{"date": "2024-01-01", "metricA": 0.5, "metricB": 0.1}]
        assert prompt.system_text.startswith("You are a performance analyst")
        assert prompt.max_tokens == 500
