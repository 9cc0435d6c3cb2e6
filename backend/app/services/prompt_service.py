"""
Prompt Service - Build the system context and user message for a spreadsheet question
"""

import json
import logging
from typing import Any, Optional

from app.models.analysis import Prompt
from app.models.spreadsheet import SpreadsheetDocument
from app.services.sheet_projections import SheetProjection, RowRecordsProjection

logger = logging.getLogger(__name__)


class PromptComposer:
    """Composes prompts around whatever the configured projection extracts"""

    def __init__(self, projection: Optional[SheetProjection] = None):
        self.projection = projection or RowRecordsProjection()

    def project(self, document: Optional[SpreadsheetDocument]) -> Any:
        """Projected data, or the projection's empty value when there is nothing usable"""
        if document is None:
            return self.projection.empty()
        try:
            return self.projection.project(document)
        except Exception as e:
            logger.error(
                f"Projection '{self.projection.name}' failed for {document.spreadsheet_id}: {e}"
            )
            return self.projection.empty()

    def compose(self, document: Optional[SpreadsheetDocument], question: str) -> Prompt:
        """
        Build the two-part prompt. Never raises.

        Args:
            document: Fetched spreadsheet, or None when no spreadsheet was given
            question: User question, passed through verbatim

        Returns:
            Prompt with system context, user text and length bound
        """
        data = self.project(document)
        serialized = json.dumps(data, indent=2, ensure_ascii=False, default=str)

        system_text = (
            f"{self.projection.persona}\n"
            f"You have access to the following spreadsheet data: {serialized}\n\n"
            f"{self.projection.directives}"
        )

        return Prompt(
            system_text=system_text,
            user_text=question,
            max_tokens=self.projection.max_tokens
        )
