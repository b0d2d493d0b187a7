"""
PromptShot Workflow State

The single mutable record for a session, the stage/action enumerations and
the transition table that constrains how the stage pointer moves.
"""

import math
import re
from dataclasses import dataclass, field, fields
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, Optional

from promptshot.core.config import WorkflowConfig
from promptshot.core.constants import (
    ColorMood,
    DEFAULT_ART_STYLE,
    DEFAULT_SCENE_COUNT,
    MAX_SCENE_COUNT,
    MIN_SCENE_COUNT,
)
from promptshot.core.exceptions import InvalidTransitionError


class Stage(IntEnum):
    """The seven workflow stages, in order."""
    SCRIPT_INTAKE = 1
    PACING = 2
    ART_STYLE = 3
    REVIEW = 4
    STORYBOARD_RESULT = 5
    ANIMATION_RESULT = 6
    JSON_RESULT = 7

    @property
    def title(self) -> str:
        return STAGE_TITLES[self]


STAGE_TITLES = {
    Stage.SCRIPT_INTAKE: "Provide Your Script",
    Stage.PACING: "Scene Pacing",
    Stage.ART_STYLE: "Art Style",
    Stage.REVIEW: "Review & Refine",
    Stage.STORYBOARD_RESULT: "Storyboard Prompts",
    Stage.ANIMATION_RESULT: "Animation Prompts",
    Stage.JSON_RESULT: "JSON Video Prompts",
}


class Action(Enum):
    """Actions a user can trigger."""
    ANALYZE_SCRIPT = "analyze_script"
    SET_SCENE_COUNT = "set_scene_count"
    EXTRACT_CHARACTERS = "extract_characters"
    GENERATE_STORYBOARD = "generate_storyboard"
    GENERATE_ANIMATION = "generate_animation"
    GENERATE_JSON = "generate_json"
    BACK = "back"
    START_OVER = "start_over"


# Forward transitions: (stage, action) -> next stage
FORWARD_TRANSITIONS: Dict[tuple, Stage] = {
    (Stage.SCRIPT_INTAKE, Action.ANALYZE_SCRIPT): Stage.PACING,
    (Stage.PACING, Action.SET_SCENE_COUNT): Stage.ART_STYLE,
    (Stage.ART_STYLE, Action.EXTRACT_CHARACTERS): Stage.REVIEW,
    (Stage.REVIEW, Action.GENERATE_STORYBOARD): Stage.STORYBOARD_RESULT,
    (Stage.STORYBOARD_RESULT, Action.GENERATE_ANIMATION): Stage.ANIMATION_RESULT,
    (Stage.ANIMATION_RESULT, Action.GENERATE_JSON): Stage.JSON_RESULT,
}

# Field written by each producing action
ACTION_TARGET_FIELDS: Dict[Action, str] = {
    Action.ANALYZE_SCRIPT: "summary",
    Action.SET_SCENE_COUNT: "scene_count",
    Action.EXTRACT_CHARACTERS: "characters",
    Action.GENERATE_STORYBOARD: "storyboard_prompts",
    Action.GENERATE_ANIMATION: "animation_prompts",
    Action.GENERATE_JSON: "json_prompts",
}

# User-editable fields and the stage in which each may be edited
EDITABLE_FIELDS: Dict[str, Stage] = {
    "script": Stage.SCRIPT_INTAKE,
    "scene_count": Stage.PACING,
    "art_style": Stage.ART_STYLE,
    "characters": Stage.REVIEW,
    "color_mood": Stage.REVIEW,
}


def allowed_actions(stage: Stage) -> FrozenSet[Action]:
    """Actions that may be triggered from a stage."""
    actions = {action for (from_stage, action) in FORWARD_TRANSITIONS if from_stage == stage}
    if stage > Stage.SCRIPT_INTAKE:
        actions.add(Action.BACK)
    actions.add(Action.START_OVER)
    return frozenset(actions)


def next_stage(stage: Stage, action: Action) -> Stage:
    """
    Resolve the stage an action leads to.

    Raises:
        InvalidTransitionError: if the action is not allowed from the stage
    """
    if action == Action.START_OVER:
        return Stage.SCRIPT_INTAKE
    if action == Action.BACK:
        if stage == Stage.SCRIPT_INTAKE:
            raise InvalidTransitionError(stage.name, action.value)
        return Stage(stage - 1)
    target = FORWARD_TRANSITIONS.get((stage, action))
    if target is None:
        raise InvalidTransitionError(stage.name, action.value)
    return target


_LEADING_INT = re.compile(r"^\s*([+-]?)0*(\d+)")


def clamp_scene_count(value: Any) -> int:
    """
    Clamp a scene count into [MIN_SCENE_COUNT, MAX_SCENE_COUNT].

    Strings are read by their leading integer ("7 scenes" -> 7, "3.7" -> 3);
    anything non-numeric falls back to the minimum.
    """
    if isinstance(value, bool) or value is None:
        return MIN_SCENE_COUNT
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return MIN_SCENE_COUNT
        value = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return MIN_SCENE_COUNT
        sign, digits = match.groups()
        # too many digits to be in range
        if len(digits) > len(str(MAX_SCENE_COUNT)):
            return MIN_SCENE_COUNT if sign == "-" else MAX_SCENE_COUNT
        value = int(sign + digits)
    elif not isinstance(value, int):
        return MIN_SCENE_COUNT

    # zero counts as unset
    if value == 0:
        return MIN_SCENE_COUNT
    return max(MIN_SCENE_COUNT, min(MAX_SCENE_COUNT, value))


@dataclass
class WorkflowState:
    """Everything the user entered and the AI produced for one session."""
    stage: Stage = Stage.SCRIPT_INTAKE
    script: str = ""
    summary: str = ""
    scene_count: int = DEFAULT_SCENE_COUNT
    art_style: str = DEFAULT_ART_STYLE
    characters: str = ""
    color_mood: ColorMood = ColorMood.DEFAULT
    storyboard_prompts: str = ""
    animation_prompts: str = ""
    json_prompts: str = ""
    error: str = ""
    is_loading: bool = False

    # Defaults reapplied on start over
    defaults: WorkflowConfig = field(default_factory=WorkflowConfig, repr=False, compare=False)

    @classmethod
    def initial(cls, workflow_config: Optional[WorkflowConfig] = None) -> 'WorkflowState':
        """Create a fresh record at stage 1 with configured defaults."""
        state = cls(defaults=workflow_config or WorkflowConfig())
        state.reset()
        return state

    def reset(self) -> None:
        """Reinitialize every field to its default and return to stage 1."""
        self.stage = Stage.SCRIPT_INTAKE
        self.script = ""
        self.summary = ""
        self.scene_count = self.defaults.default_scene_count
        self.art_style = self.defaults.default_art_style
        self.characters = ""
        self.color_mood = self.defaults.default_color_mood
        self.storyboard_prompts = ""
        self.animation_prompts = ""
        self.json_prompts = ""
        self.error = ""
        self.is_loading = False

    def data_fields(self) -> Dict[str, Any]:
        """User and AI-produced data, without the transient flags."""
        transient = {"stage", "error", "is_loading", "defaults"}
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name not in transient}

    def snapshot(self) -> Dict[str, Any]:
        """Plain, JSON-friendly view of the record for display."""
        data = self.data_fields()
        data["color_mood"] = self.color_mood.value
        data.update({
            "stage": int(self.stage),
            "stage_name": self.stage.name.lower(),
            "stage_title": self.stage.title,
            "error": self.error,
            "is_loading": self.is_loading,
            "allowed_actions": sorted(a.value for a in allowed_actions(self.stage)),
            "color_mood_options": [mood.value for mood in ColorMood],
        })
        return data
