"""FastAPI application main file"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from app.config import settings
from app.api.v1 import router as api_router
from app.models.analysis import HealthResponse
from app.services.analysis_service import AnalysisPipeline, build_pipeline

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(pipeline: Optional[AnalysisPipeline] = None) -> FastAPI:
    """
    Create the FastAPI app

    Args:
        pipeline: Pre-built pipeline. When omitted it is built from settings at
            startup, and a credentials failure aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.pipeline is None:
            if not settings.OPENAI_API_KEY and settings.AI_PROVIDER == "openai":
                logger.warning("OPENAI_API_KEY is not set; completions will fail")
            app.state.pipeline = build_pipeline(settings)
        logger.info(f"{settings.PROJECT_NAME} ready on port {settings.PORT}")
        yield

    # Create FastAPI app
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Ask questions about Google Sheets data over a WebSocket.",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.state.require_spreadsheet_id = settings.REQUIRE_SPREADSHEET_ID

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # WebSocket routes at "/" and "/ws"
    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint"""
        return {
            "message": f"{settings.PROJECT_NAME} API",
            "version": settings.VERSION,
            "websocket": "/ws"
        }

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint"""
        return HealthResponse()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
