"""Workflow router for the PromptShot API.

Presentation boundary: exposes the current stage's fields, the actions it
allows, and file import/export. Workflow failures are reported in the
response body and on the state's error field, not as server faults.

The router is built per application by create_router, so each app's action
rate limit is enforced by that app's own limiter.
"""

from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel
from slowapi import Limiter

from promptshot.core.exceptions import (
    InputValidationError,
    InvalidTransitionError,
    StageBusyError,
    WorkflowError,
)
from promptshot.core.logging_config import get_logger
from promptshot.workflow import Action, StageEngine, export_artifact

logger = get_logger("api.workflow")


class FieldUpdate(BaseModel):
    script: Optional[str] = None
    scene_count: Optional[Union[int, float, str]] = None
    art_style: Optional[str] = None
    characters: Optional[str] = None
    color_mood: Optional[str] = None


class ActionRequest(BaseModel):
    scene_count: Optional[Union[int, float, str]] = None


class ActionResult(BaseModel):
    action: str
    success: bool
    stage: int
    error: Optional[str] = None
    error_type: Optional[str] = None


class ActionResponse(BaseModel):
    result: ActionResult
    state: Dict[str, Any]


def get_engine(request: Request) -> StageEngine:
    """The single workflow session held by the application."""
    return request.app.state.engine


def _http_error(error: WorkflowError) -> HTTPException:
    if isinstance(error, (InvalidTransitionError, StageBusyError)):
        return HTTPException(409, error.user_message)
    return HTTPException(422, error.user_message)


def create_router(limiter: Limiter, action_rate_limit: str) -> APIRouter:
    """
    Build the workflow routes.

    Args:
        limiter: The application's limiter (also registered on app.state)
        action_rate_limit: slowapi limit string for action triggers, e.g. "20/minute"
    """
    router = APIRouter()

    @router.get("/state")
    async def get_state(engine: StageEngine = Depends(get_engine)):
        """Get the current workflow state."""
        return engine.snapshot()

    @router.patch("/state")
    async def update_state(update: FieldUpdate, engine: StageEngine = Depends(get_engine)):
        """Edit the user fields of the current stage."""
        changes = update.model_dump(exclude_unset=True)
        try:
            engine.update_fields(**changes)
        except WorkflowError as e:
            logger.warning(f"Rejected field update {sorted(changes)}: {e}")
            raise _http_error(e)
        return engine.snapshot()

    @router.post("/actions/{action_name}", response_model=ActionResponse)
    @limiter.limit(action_rate_limit)
    async def trigger_action(
        request: Request,
        action_name: str,
        payload: Optional[ActionRequest] = None,
        engine: StageEngine = Depends(get_engine)
    ):
        """Trigger a workflow action (analyze_script, back, start_over, ...)."""
        try:
            action = Action(action_name)
        except ValueError:
            raise HTTPException(404, f"Unknown action: {action_name}")

        params = {}
        if payload is not None and payload.scene_count is not None:
            params["scene_count"] = payload.scene_count

        result = await engine.trigger(action, **params)
        return ActionResponse(
            result=ActionResult(
                action=result.action.value,
                success=result.success,
                stage=int(result.stage),
                error=result.error,
                error_type=result.error_type,
            ),
            state=engine.snapshot(),
        )

    @router.post("/script/upload")
    async def upload_script(file: UploadFile = File(...), engine: StageEngine = Depends(get_engine)):
        """Load a plain-text script file into the script field."""
        data = await file.read()
        try:
            engine.import_script(data, file.content_type, file.filename)
        except InputValidationError as e:
            raise HTTPException(415, e.user_message)
        except WorkflowError as e:
            raise _http_error(e)
        return engine.snapshot()

    @router.get("/exports/{kind}")
    async def download_export(kind: str, engine: StageEngine = Depends(get_engine)):
        """Download the storyboard, animation or JSON prompts as a file."""
        try:
            artifact = export_artifact(engine.state, kind)
        except InputValidationError as e:
            raise HTTPException(404, e.user_message)

        headers = {"Content-Disposition": f'attachment; filename="{artifact.filename}"'}
        return Response(
            content=artifact.to_bytes(),
            media_type=artifact.content_type,
            headers=headers,
        )

    return router
