"""
Analysis WebSocket - one SessionHandler per connected client
"""

import enum
import json
import logging
from typing import Optional, Union

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.core.exceptions import ERROR_PREFIX, AnalysisError, MessageParseError
from app.models.analysis import AnalysisRequest, AnalysisResponse

router = APIRouter()
logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    CLOSED = "closed"


def parse_request(data: Union[str, bytes]) -> AnalysisRequest:
    """Decode an inbound frame into an AnalysisRequest"""
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        payload = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MessageParseError(f"Invalid JSON message: {e}") from e

    if not isinstance(payload, dict):
        raise MessageParseError("Message must be a JSON object")

    try:
        return AnalysisRequest.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise MessageParseError(f"Invalid message ({fields})") from e


def error_response(message: str, code: str) -> AnalysisResponse:
    return AnalysisResponse(content=ERROR_PREFIX + message, error=code)


class SessionHandler:
    """
    Owns one client connection

    Messages are handled one at a time: the next frame is only read after the
    current answer has been sent, so responses keep request order. Frames sent
    meanwhile are buffered by the transport.
    """

    def __init__(self, websocket: WebSocket, pipeline, require_spreadsheet_id: bool = True):
        self.websocket = websocket
        self.pipeline = pipeline
        self.require_spreadsheet_id = require_spreadsheet_id
        self.state = SessionState.IDLE

    async def run(self):
        await self.websocket.accept()
        logger.info("New client connected")
        try:
            while True:
                data = await self._receive()
                self.state = SessionState.PROCESSING
                response = await self.handle_message(data)
                if response is not None:
                    await self.send(response)
                self.state = SessionState.IDLE
        except WebSocketDisconnect:
            pass
        finally:
            self.state = SessionState.CLOSED
            logger.info("Client disconnected")

    async def _receive(self) -> Union[str, bytes]:
        message = await self.websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000))
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""

    async def handle_message(self, data: Union[str, bytes]) -> Optional[AnalysisResponse]:
        """
        Run the pipeline for one frame

        Returns None when the message carries no spreadsheet ID and one is
        required; every other message gets exactly one response.
        """
        try:
            request = parse_request(data)
            if not request.spreadsheetId and self.require_spreadsheet_id:
                logger.warning("Message without spreadsheetId ignored")
                return None
            return await self.pipeline.run(request)
        except AnalysisError as e:
            logger.error(f"Error: {e.message}")
            return error_response(e.message, e.code)
        except Exception as e:
            logger.exception(f"Unexpected error while processing message: {e}")
            return error_response(str(e), "internal")

    async def send(self, response: AnalysisResponse):
        """Send a response. A client that already left is logged and skipped."""
        try:
            await self.websocket.send_json(response.to_wire())
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.warning(f"Could not deliver response, client is gone: {e}")


@router.websocket("/")
@router.websocket("/ws")
async def analysis_socket(websocket: WebSocket):
    """Spreadsheet Q&A over a WebSocket"""
    handler = SessionHandler(
        websocket,
        websocket.app.state.pipeline,
        require_spreadsheet_id=websocket.app.state.require_spreadsheet_id
    )
    await handler.run()
