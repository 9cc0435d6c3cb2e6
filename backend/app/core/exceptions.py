"""
Error taxonomy for the analysis pipeline
"""

ERROR_PREFIX = "Sorry, there was an error processing your request: "


class AnalysisError(Exception):
    """Base class for failures reported back to the client as an assistant message"""

    code = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SpreadsheetAccessError(AnalysisError):
    """Spreadsheet could not be read (auth, bad identifier, network, malformed sheet)"""

    code = "spreadsheet_access"


class CompletionError(AnalysisError):
    """Chat completion call failed or returned nothing"""

    code = "completion"


class MessageParseError(AnalysisError):
    """Inbound message is not valid JSON or does not match the request schema"""

    code = "message_parse"


class CredentialsError(Exception):
    """Service account credentials could not be loaded. Fatal at startup."""
