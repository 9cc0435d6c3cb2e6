"""
Analysis Service - spreadsheet fetch, prompt composition and completion for one question
"""

import logging

from app.models.analysis import AnalysisRequest, AnalysisResponse
from app.services.ai_service import CompletionService, build_completion_service
from app.services.google_sheets_service import GoogleSheetsService, load_service_account_credentials
from app.services.prompt_service import PromptComposer
from app.services.sheet_projections import build_projection

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """Runs fetch -> compose -> complete. Holds no per-request state."""

    def __init__(
        self,
        sheets_service: GoogleSheetsService,
        composer: PromptComposer,
        completion_service: CompletionService
    ):
        self.sheets_service = sheets_service
        self.composer = composer
        self.completion_service = completion_service

    async def run(self, request: AnalysisRequest) -> AnalysisResponse:
        """
        Answer one request

        The spreadsheet is fetched exactly once when an ID is given; without
        one the prompt carries empty sheet context.

        Raises:
            SpreadsheetAccessError, CompletionError
        """
        document = None
        if request.spreadsheetId:
            document = await self.sheets_service.fetch(request.spreadsheetId)

        prompt = self.composer.compose(document, request.content)
        content = await self.completion_service.complete(
            prompt.system_text,
            prompt.user_text,
            max_tokens=prompt.max_tokens
        )
        return AnalysisResponse(content=content)


def build_pipeline(settings) -> AnalysisPipeline:
    """
    Wire the pipeline from settings. Called once at startup.

    Raises:
        CredentialsError: if the service account cannot be loaded
    """
    credentials = load_service_account_credentials(settings.sheets_config)
    projection = build_projection(settings)
    logger.info(f"Using '{projection.name}' sheet projection")
    return AnalysisPipeline(
        sheets_service=GoogleSheetsService(credentials),
        composer=PromptComposer(projection),
        completion_service=build_completion_service(settings)
    )
