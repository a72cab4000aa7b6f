"""FastAPI application for the ad generator."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from .. import __version__
from ..agents import ClipPromptInput, ClipPromptWriter
from ..config import Config, config
from ..errors import ConfigurationError, PlanningError, RemoteAPIError, ValidationError
from ..pipeline import PipelineController, parse_input
from ..services.xai import XAIClient
from .streaming import SSE_HEADERS, event_stream, start_run

logger = logging.getLogger(__name__)


def get_settings() -> Config:
    return config


def get_controller(request: Request) -> PipelineController:
    return request.app.state.controller


def get_client(request: Request) -> XAIClient:
    return request.app.state.client


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@asynccontextmanager
async def lifespan(app: FastAPI):
    controller: Optional[PipelineController] = getattr(app.state, "controller", None)
    owned = controller is None
    if owned:
        controller = PipelineController.from_config(config)
        app.state.controller = controller
        app.state.client = controller.client
    try:
        yield
    finally:
        if owned:
            await controller.aclose()


app = FastAPI(
    title="Ad Generator API",
    description="Agentic three-scene video ad generation",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for web UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/api/pipeline")
async def run_pipeline(
    request: Request,
    settings: Config = Depends(get_settings),
    controller: PipelineController = Depends(get_controller),
):
    """Run the three-scene pipeline and stream its events.

    Event types:
    - scene_planning / scene_planned: the planner is deciding / has decided
    - image_generating / image_complete: reference image (image-then-video)
    - video_submitted / video_polling / video_complete: video job progress
    - scene_complete: a scene is finished and persisted
    - pipeline_complete: all scenes done
    - error: the run failed
    """
    try:
        settings.validate_required()
    except ConfigurationError as e:
        return _error(str(e), 500)

    try:
        payload: Any = await request.json()
    except ValueError:
        return _error("Invalid JSON body", 400)

    try:
        pipeline_input = parse_input(payload)
    except ValidationError as e:
        return _error(str(e), 400)

    logger.info(f"POST /api/pipeline: {pipeline_input.concept[:60]}")
    channel, task, token = start_run(controller, pipeline_input)
    return StreamingResponse(
        event_stream(channel, task, token),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@app.post("/api/generate-prompts")
async def generate_prompts(
    request: Request,
    settings: Config = Depends(get_settings),
    client: XAIClient = Depends(get_client),
):
    """Draft three clip prompts from a master concept and optional images."""
    try:
        settings.validate_required()
    except ConfigurationError as e:
        return _error(str(e), 500)

    try:
        body = await request.json()
    except ValueError:
        return _error("Invalid JSON body", 400)

    master_prompt = body.get("masterPrompt") if isinstance(body, dict) else None
    if not isinstance(master_prompt, str) or not master_prompt.strip():
        return _error("masterPrompt is required", 400)
    images = body.get("images") or []
    if not isinstance(images, list) or not all(isinstance(i, str) for i in images):
        return _error("images must be a list of URLs or data URIs", 400)

    writer = ClipPromptWriter(client, model=settings.prompt_model)
    try:
        result = await writer.run(ClipPromptInput(master_prompt=master_prompt, images=images))
    except ValueError as e:
        return _error(str(e), 400)
    except PlanningError as e:
        cause = e.__cause__
        status = cause.status_code if isinstance(cause, RemoteAPIError) else 500
        return _error(str(e), status)

    response: dict[str, Any] = {"prompts": result.prompts}
    if result.image_assignment is not None:
        response["imageAssignment"] = result.image_assignment
    return response


def start_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """Start the FastAPI server."""
    uvicorn.run(
        "adgen.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )
