"""Application configuration"""
from dataclasses import dataclass
from pydantic_settings import BaseSettings
from typing import Optional, Literal, Tuple


SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"


@dataclass(frozen=True)
class SheetsConfig:
    """Service account source for the Sheets API. Read once at startup."""
    credentials_file: str
    credentials_json: Optional[str] = None
    scopes: Tuple[str, ...] = (SHEETS_SCOPE,)


@dataclass(frozen=True)
class CompletionOptions:
    """Chat completion parameters shared by every request"""
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 2000


class Settings(BaseSettings):
    """Settings from environment."""

    AI_PROVIDER: Literal["openai", "azure"] = "openai"
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_MAX_TOKENS: int = 2000
    METRICS_MAX_TOKENS: int = 500

    AZURE_OPENAI_ENDPOINT: str = ""
    AZURE_OPENAI_KEY: str = ""
    AZURE_OPENAI_API_VERSION: str = "2024-12-01-preview"

    GOOGLE_CREDENTIALS_FILE: str = "./google-credentials.json"
    GOOGLE_CREDENTIALS_JSON: Optional[str] = None  # Inline JSON wins over the file

    # rows = header-keyed records, grid = raw cells, metrics = focused column projection
    SHEET_PROJECTION: Literal["rows", "grid", "metrics"] = "rows"
    METRICS_SHEET_TITLE: str = "Metrics"
    METRICS_DATE_COLUMN: int = 0
    METRICS_DATE_HEADER: Optional[str] = None
    METRICS_PRIMARY_NAME: str = "metricA"
    METRICS_PRIMARY_COLUMN: int = 3
    METRICS_PRIMARY_HEADER: Optional[str] = None
    METRICS_SECONDARY_NAME: str = "metricB"
    METRICS_SECONDARY_COLUMN: int = 5
    METRICS_SECONDARY_HEADER: Optional[str] = None
    METRICS_HEADER_ROW: bool = False  # First row of the metrics sheet holds labels

    # When False, a message without spreadsheetId is answered with empty sheet context
    REQUIRE_SPREADSHEET_ID: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    FRONTEND_URL: str = "*"
    LOG_LEVEL: str = "INFO"
    PROJECT_NAME: str = "Spreadsheet Insights"
    VERSION: str = "1.0.0"

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.FRONTEND_URL.split(",") if origin.strip()]

    @property
    def sheets_config(self) -> SheetsConfig:
        return SheetsConfig(
            credentials_file=self.GOOGLE_CREDENTIALS_FILE,
            credentials_json=self.GOOGLE_CREDENTIALS_JSON,
        )

    @property
    def completion_options(self) -> CompletionOptions:
        return CompletionOptions(
            model=self.OPENAI_MODEL,
            temperature=self.OPENAI_TEMPERATURE,
            max_tokens=self.OPENAI_MAX_TOKENS,
        )

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
