"""
StoryDigest FastAPI Application

A REST API server over the digestion pipeline.
Every CLI command has an endpoint; `session_id` selects a session other
than the active one.
"""

import io
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from storydigest.config import Config
from storydigest.models.story import StoryEdit
from storydigest.services.orchestrator import DigestOrchestrator
from storydigest.utils.exceptions import (
    DigestError,
    NoActiveSessionError,
    NotFoundError,
    OverrideRequiredError,
    PrerequisiteError,
    SessionNotFoundError,
    StoreError,
    StoryValidationError,
    ValidationError,
)
from storydigest.utils.logger import get_logger, setup_logging

# Global orchestrator instance
orchestrator: DigestOrchestrator | None = None
logger = get_logger(__name__)


# Pydantic models for API
class NewSessionRequest(BaseModel):
    """Request model for creating a session from transcript text."""

    text: str = Field(..., description="Transcript content")


class AnswerRequest(BaseModel):
    """Request model for answering presented questions."""

    text: str = Field(..., description="Free-form answer text")
    voice: bool | None = Field(default=None, description="Force voice cleanup on or off")


class RejectRequest(BaseModel):
    """Request model for rejecting the presented story."""

    reason: str = Field(..., description="Why the story is rejected")


class CheckpointRequest(BaseModel):
    """Request model for a named checkpoint."""

    name: str


class DecisionResponse(BaseModel):
    """Review decision response."""

    story_id: str
    decision: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    orchestrator_initialized: bool
    storage_backend: str
    active_session: str | None = None


def status_for(error: DigestError) -> int:
    if isinstance(error, (NotFoundError, SessionNotFoundError)):
        return 404
    if isinstance(error, (NoActiveSessionError, PrerequisiteError, OverrideRequiredError)):
        return 409
    if isinstance(error, ValidationError):
        return 422
    if isinstance(error, StoreError):
        return 500
    return 400


def get_orchestrator() -> DigestOrchestrator:
    if not orchestrator:
        raise HTTPException(status_code=503, detail="Orchestrator not initialized")
    return orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global orchestrator

    # Load configuration from environment or use defaults
    config = Config.from_env()

    # Initialize logging with config
    setup_logging(config.logging)

    logger.info("Starting StoryDigest server")
    logger.info(
        f"Configuration: storage={config.storage.backend}:{config.storage.state_dir}, "
        f"tokenizer={config.tokenizer.provider}/{config.tokenizer.model}"
    )

    orchestrator = DigestOrchestrator(config)
    logger.info("StoryDigest orchestrator initialized")

    yield

    logger.info("Shutting down StoryDigest server")
    orchestrator = None


# Create FastAPI app
app = FastAPI(
    title="StoryDigest API",
    description="Transcript digestion into traceable user stories",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DigestError)
async def digest_error_handler(request: Request, exc: DigestError):
    """Map pipeline errors onto HTTP status codes."""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    content = {"detail": exc.message, "context": exc.context}
    if isinstance(exc, StoryValidationError):
        content["field_errors"] = exc.field_errors
    return JSONResponse(status_code=status_code, content=content)


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if orchestrator else "initializing",
        orchestrator_initialized=orchestrator is not None,
        storage_backend=orchestrator.config.storage.backend if orchestrator else "unknown",
        active_session=orchestrator.active_session_id() if orchestrator else None,
    )


# Session endpoints
@app.post("/sessions")
async def new_session(request: NewSessionRequest):
    """
    Create a session from transcript text and run ingestion and extraction.

    The new session becomes the active one.
    """
    return get_orchestrator().new("-", io.StringIO(request.text))


@app.get("/sessions")
async def list_sessions():
    """List registered sessions with the active one flagged."""
    engine = get_orchestrator()
    active = engine.active_session_id()
    return [
        {**entry.model_dump(mode="json"), "active": entry.session_id == active}
        for entry in engine.list_sessions()
    ]


@app.post("/sessions/{session_id}/switch")
async def switch_session(session_id: str):
    return get_orchestrator().switch(session_id)


@app.post("/sessions/{session_id}/archive")
async def archive_session(session_id: str):
    return get_orchestrator().archive(session_id)


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str, force: bool = Query(default=False)):
    """Delete a session and its documents. Requires force=true."""
    get_orchestrator().delete(session_id, force)
    return {"id": session_id, "deleted": True}


@app.post("/checkpoints")
async def checkpoint(request: CheckpointRequest, session_id: str | None = None):
    return get_orchestrator().checkpoint(request.name, session_id)


@app.get("/status")
async def status(session_id: str | None = None):
    return get_orchestrator().status(session_id)


@app.get("/resume")
async def resume(session_id: str | None = None):
    """Recovery summary and open questions of an interrupted session."""
    summary, open_questions = get_orchestrator().resume(session_id)
    return {"interrupted": summary is not None, "recovery": summary, "questions": open_questions}


# Digestion passes
@app.post("/passes/2")
async def pass2(session_id: str | None = None):
    """Associate statements with topics and report coverage."""
    return get_orchestrator().pass2(session_id)


@app.post("/passes/3")
async def pass3(session_id: str | None = None):
    """Resolve orphan statements."""
    return get_orchestrator().pass3(session_id)


@app.post("/passes/4")
async def pass4(session_id: str | None = None):
    """Detect and resolve contradictions."""
    return get_orchestrator().pass4(session_id)


# Clarification endpoints
@app.post("/questions")
async def questions(session_id: str | None = None):
    """Present the next batch of clarification questions."""
    return get_orchestrator().questions(session_id)


@app.post("/answers")
async def answer(request: AnswerRequest, session_id: str | None = None):
    return get_orchestrator().answer(request.text, request.voice, session_id)


# Story endpoints
@app.post("/stories/generate")
async def generate_stories(session_id: str | None = None):
    return get_orchestrator().generate_stories(session_id)


@app.get("/stories")
async def list_stories(session_id: str | None = None):
    return get_orchestrator().stories(session_id)


@app.get("/stories/{story_id}")
async def get_story(story_id: str, session_id: str | None = None):
    return get_orchestrator().story(story_id, session_id)


@app.patch("/stories/{story_id}")
async def edit_story(story_id: str, edit: StoryEdit, session_id: str | None = None):
    """
    Commit an edit session to a story.

    The whole edit is validated first; a rejected edit leaves the story
    unchanged and returns 422 with field errors.
    """
    return get_orchestrator().edit_story(story_id, edit, session_id)


# Review endpoints
@app.post("/review/present")
async def present(session_id: str | None = None):
    """Present the next story; null once every story is decided."""
    return get_orchestrator().present(session_id)


@app.post("/review/approve", response_model=DecisionResponse)
async def approve(session_id: str | None = None):
    return DecisionResponse(story_id=get_orchestrator().approve(session_id), decision="approved")


@app.post("/review/reject", response_model=DecisionResponse)
async def reject(request: RejectRequest, session_id: str | None = None):
    story_id = get_orchestrator().reject(request.reason, session_id)
    return DecisionResponse(story_id=story_id, decision="rejected")


@app.post("/review/skip", response_model=DecisionResponse)
async def skip(session_id: str | None = None):
    return DecisionResponse(story_id=get_orchestrator().skip(session_id), decision="skipped")


@app.post("/finalize")
async def finalize(force: bool = Query(default=False), session_id: str | None = None):
    """Hand approved stories to the ready queue."""
    return get_orchestrator().finalize(force, session_id)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "StoryDigest API",
        "version": "1.0.0",
        "description": "Transcript digestion into traceable user stories",
        "docs": "/docs",
        "health": "/health",
    }
