"""
PromptShot Stage Engine

Drives the workflow state machine. For each triggered action the engine
validates the transition, builds the prompt, calls the completion gateway,
post-processes the response, stores it and advances the stage.

Every failure is caught here and turned into a message on
WorkflowState.error; nothing propagates to the presentation layer.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from promptshot.core.config import PromptShotConfig
from promptshot.core.constants import ColorMood, NO_CHARACTERS_MARKER
from promptshot.core.exceptions import (
    InputValidationError,
    InvalidTransitionError,
    PromptShotError,
    ServiceError,
    StageBusyError,
)
from promptshot.core.logging_config import get_logger
from promptshot.llm.gateway import CompletionGateway
from .files import read_script_upload
from .prompts import (
    build_prompt,
    count_scenes,
    format_scene_array,
    is_no_characters,
    is_sequential,
    parse_characters,
    parse_scene_array,
    parse_scene_numbers,
)
from .state import (
    ACTION_TARGET_FIELDS,
    EDITABLE_FIELDS,
    Action,
    Stage,
    WorkflowState,
    clamp_scene_count,
    next_stage,
)

logger = get_logger("workflow.engine")

UNEXPECTED_ERROR_MESSAGE = "Something went wrong while processing your request. Please try again."


@dataclass
class StageResult:
    """Outcome of a single triggered action."""
    action: Action
    success: bool
    stage: Stage
    error: Optional[str] = None
    error_type: Optional[str] = None


class StageEngine:
    """
    State machine over a single WorkflowState.

    The engine is the only writer of the state. The completion gateway is
    injected so that tests can substitute a scripted one.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        state: Optional[WorkflowState] = None,
        config: Optional[PromptShotConfig] = None
    ):
        self.gateway = gateway
        self.config = config or PromptShotConfig()
        self.state = state or WorkflowState.initial(self.config.workflow)

    def snapshot(self) -> Dict[str, Any]:
        """State snapshot plus values derived from the generated text."""
        state = self.state
        data = state.snapshot()
        data["storyboard_scene_count"] = count_scenes(state.storyboard_prompts)
        data["animation_scene_count"] = count_scenes(state.animation_prompts)
        data["character_names"] = [record.name for record in parse_characters(state.characters)]
        return data

    # -------------------------------------------------------------------------
    # Triggering
    # -------------------------------------------------------------------------

    async def trigger(self, action: Action, **params: Any) -> StageResult:
        """
        Run an action against the current stage.

        Args:
            action: The action to run
            **params: Action parameters (only `scene_count` for SET_SCENE_COUNT)

        Returns:
            StageResult describing success or the user-visible failure
        """
        state = self.state

        # The in-flight call owns the state until it settles
        if state.is_loading:
            busy = StageBusyError(action.value)
            logger.warning(f"Rejected {action.value}: a request is already in progress")
            return StageResult(action, False, state.stage, busy.user_message, type(busy).__name__)

        state.error = ""
        start_stage = state.stage
        logger.info(f"Action {action.value} at stage {start_stage.name}")

        try:
            target = next_stage(start_stage, action)

            if action == Action.START_OVER:
                state.reset()
            elif action == Action.BACK:
                state.stage = target
            elif action == Action.SET_SCENE_COUNT:
                value = params.get("scene_count", state.scene_count)
                state.scene_count = clamp_scene_count(value)
                state.stage = target
            else:
                await self._run_generation(action, target)

        except PromptShotError as e:
            state.error = e.user_message
            logger.warning(f"Action {action.value} failed at stage {start_stage.name}: {e}")
            return StageResult(action, False, state.stage, state.error, type(e).__name__)
        except Exception as e:
            state.error = UNEXPECTED_ERROR_MESSAGE
            logger.error(f"Unexpected failure in {action.value} at stage {start_stage.name}: {e}", exc_info=True)
            return StageResult(action, False, state.stage, state.error, type(e).__name__)

        if state.stage != start_stage:
            logger.info(f"Stage {start_stage.name} -> {state.stage.name}")
        return StageResult(action, True, state.stage)

    async def _run_generation(self, action: Action, target: Stage) -> None:
        state = self.state

        if action == Action.ANALYZE_SCRIPT and not state.script.strip():
            raise InputValidationError("Script cannot be empty.")

        built = build_prompt(action, state)
        state.is_loading = True
        try:
            response = await self.gateway.complete(built.text, built.contract)
        finally:
            state.is_loading = False

        if not response or not response.strip():
            raise ServiceError("The AI returned an empty response.")

        value = self._post_process(action, response)
        setattr(state, ACTION_TARGET_FIELDS[action], value)
        state.stage = target

    def _post_process(self, action: Action, response: str) -> str:
        if action == Action.GENERATE_JSON:
            scenes = parse_scene_array(response)
            logger.info(f"Parsed {len(scenes)} scene(s) from JSON response")
            return format_scene_array(scenes)

        if action == Action.EXTRACT_CHARACTERS and is_no_characters(response):
            logger.info("No distinct characters found in script")
            return NO_CHARACTERS_MARKER

        if action == Action.GENERATE_STORYBOARD:
            numbers = parse_scene_numbers(response)
            if not numbers:
                logger.warning("Storyboard response contains no 'Scene X:' headers")
            elif not is_sequential(numbers):
                logger.warning(f"Storyboard scene numbering {numbers} is not sequential from 1")

        if action == Action.GENERATE_ANIMATION:
            expected = parse_scene_numbers(self.state.storyboard_prompts)
            actual = parse_scene_numbers(response)
            if expected != actual:
                logger.warning(f"Animation scene numbering {actual} differs from storyboard {expected}")

        return response

    # -------------------------------------------------------------------------
    # Per-stage conveniences
    # -------------------------------------------------------------------------

    async def analyze_script(self) -> StageResult:
        return await self.trigger(Action.ANALYZE_SCRIPT)

    async def set_scene_count(self, value: Any = None) -> StageResult:
        if value is None:
            return await self.trigger(Action.SET_SCENE_COUNT)
        return await self.trigger(Action.SET_SCENE_COUNT, scene_count=value)

    async def extract_characters(self) -> StageResult:
        return await self.trigger(Action.EXTRACT_CHARACTERS)

    async def generate_storyboard(self) -> StageResult:
        return await self.trigger(Action.GENERATE_STORYBOARD)

    async def generate_animation(self) -> StageResult:
        return await self.trigger(Action.GENERATE_ANIMATION)

    async def generate_json(self) -> StageResult:
        return await self.trigger(Action.GENERATE_JSON)

    async def back(self) -> StageResult:
        return await self.trigger(Action.BACK)

    async def start_over(self) -> StageResult:
        return await self.trigger(Action.START_OVER)

    # -------------------------------------------------------------------------
    # Field editing
    # -------------------------------------------------------------------------

    def update_fields(self, **changes: Any) -> WorkflowState:
        """
        Apply user edits to editable fields.

        Each field may only be edited in its own stage; scene_count is clamped
        and color_mood must be a known ColorMood value.

        Raises:
            StageBusyError: if a completion call is outstanding
            InvalidTransitionError: if a field is not editable at this stage
            InputValidationError: for unknown fields or invalid values
        """
        state = self.state
        if state.is_loading:
            raise StageBusyError("update_fields")

        for name in changes:
            if name not in EDITABLE_FIELDS:
                raise InputValidationError(f"Unknown or read-only field: {name}", {"field": name})
            if EDITABLE_FIELDS[name] != state.stage:
                raise InvalidTransitionError(state.stage.name, f"edit {name}")

        updates = dict(changes)
        if "scene_count" in updates:
            updates["scene_count"] = clamp_scene_count(updates["scene_count"])
        if "color_mood" in updates:
            updates["color_mood"] = _coerce_color_mood(updates["color_mood"])
        for name in ("script", "art_style", "characters"):
            if name in updates and not isinstance(updates[name], str):
                raise InputValidationError(f"{name} must be text", {"field": name})

        for name, value in updates.items():
            setattr(state, name, value)
        logger.debug(f"Updated fields at stage {state.stage.name}: {sorted(updates)}")
        return state

    def import_script(
        self,
        data: bytes,
        content_type: Optional[str],
        filename: Optional[str] = None
    ) -> WorkflowState:
        """
        Load an uploaded plain-text file into `script`.

        A rejected upload leaves its message on the error field and re-raises.
        While a completion call is outstanding the state is left untouched.

        Raises:
            StageBusyError: if a completion call is outstanding
            InvalidTransitionError: outside the script intake stage
            InputValidationError: for non-plain-text or undecodable uploads
        """
        if self.state.is_loading:
            raise StageBusyError("import_script")

        try:
            text = read_script_upload(data, content_type, filename)
            self.update_fields(script=text)
        except PromptShotError as e:
            self.state.error = e.user_message
            raise
        self.state.error = ""
        return self.state


def _coerce_color_mood(value: Any) -> ColorMood:
    if isinstance(value, ColorMood):
        return value
    try:
        return ColorMood(value)
    except ValueError:
        options = ", ".join(mood.value for mood in ColorMood)
        raise InputValidationError(f"Unknown color mood '{value}'. Choose one of: {options}")
