"""
PromptShot Prompt Builder

Template-based prompt generation for each stage action, co-located with the
parsers for the output format each template asks for.

No state is held here: every template maps a PromptInputs snapshot to a
BuiltPrompt (prompt text plus output contract).
"""

import json
import re
from dataclasses import dataclass
from typing import Callable, Dict, List

from pydantic import BaseModel, TypeAdapter, ValidationError

from promptshot.core.constants import ColorMood, NO_CHARACTERS_MARKER
from promptshot.core.exceptions import MalformedOutputError
from promptshot.llm.gateway import OutputContract
from .state import Action, WorkflowState


# =============================================================================
# OUTPUT GRAMMARS
# =============================================================================

# "Scene", whitespace, an integer, a colon; at line start, optionally wrapped
# in markdown emphasis ("**Scene 3:**").
SCENE_HEADER_PATTERN = re.compile(r"^[ \t]*[*_#]*[ \t]*Scene\s+(\d+)[*_]*\s*:", re.MULTILINE)

CHARACTER_RECORD_PATTERN = re.compile(
    r"^[ \t]*Character:[ \t]*(?P<name>.+?)[ \t]*\n[ \t]*Description:[ \t]*(?P<description>.*?)(?=\n[ \t]*\n|\n[ \t]*Character:|\Z)",
    re.MULTILINE | re.DOTALL
)

SCENE_ARRAY_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "scene_number": {"type": "INTEGER"},
            "prompt": {"type": "STRING"},
        },
        "required": ["scene_number", "prompt"],
    },
}


@dataclass
class CharacterRecord:
    """A `Character:` / `Description:` record."""
    name: str
    description: str


class ScenePrompt(BaseModel):
    """One element of the JSON stage's scene array."""
    scene_number: int
    prompt: str


_SCENE_ARRAY = TypeAdapter(List[ScenePrompt])


def parse_scene_numbers(text: str) -> List[int]:
    """Scene numbers in the order their headers appear."""
    return [int(m.group(1)) for m in SCENE_HEADER_PATTERN.finditer(text or "")]


def count_scenes(text: str) -> int:
    return len(parse_scene_numbers(text))


def is_sequential(numbers: List[int]) -> bool:
    """True when numbers run 1..n with no gaps or repeats."""
    return numbers == list(range(1, len(numbers) + 1))


def is_no_characters(text: str) -> bool:
    """Detect the no-characters marker, ignoring whitespace, case and quotes."""
    cleaned = (text or "").strip().strip("`\"'").strip()
    return cleaned.upper() == NO_CHARACTERS_MARKER


def parse_characters(text: str) -> List[CharacterRecord]:
    if is_no_characters(text):
        return []
    return [
        CharacterRecord(name=m.group("name").strip(), description=m.group("description").strip())
        for m in CHARACTER_RECORD_PATTERN.finditer(text or "")
    ]


def parse_scene_array(text: str) -> List[ScenePrompt]:
    """
    Parse the JSON stage response.

    Raises:
        MalformedOutputError: if the text is not JSON or not an array of scenes
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedOutputError(f"response is not valid JSON ({e})", text)

    try:
        return _SCENE_ARRAY.validate_python(data, strict=True)
    except ValidationError as e:
        raise MalformedOutputError(
            f"response does not match the scene array schema ({e.error_count()} error(s))", text
        )


def format_scene_array(scenes: List[ScenePrompt]) -> str:
    """Stable, human-readable form: 2-space indent, non-ASCII kept as-is."""
    return json.dumps([scene.model_dump() for scene in scenes], indent=2, ensure_ascii=False)


# =============================================================================
# TEMPLATES
# =============================================================================

@dataclass(frozen=True)
class PromptInputs:
    """The subset of WorkflowState that prompt templates read."""
    script: str = ""
    scene_count: int = 1
    art_style: str = ""
    characters: str = ""
    color_mood: ColorMood = ColorMood.DEFAULT
    storyboard_prompts: str = ""
    animation_prompts: str = ""

    @classmethod
    def from_state(cls, state: WorkflowState) -> 'PromptInputs':
        return cls(
            script=state.script,
            scene_count=state.scene_count,
            art_style=state.art_style,
            characters=state.characters,
            color_mood=state.color_mood,
            storyboard_prompts=state.storyboard_prompts,
            animation_prompts=state.animation_prompts,
        )


@dataclass(frozen=True)
class BuiltPrompt:
    text: str
    contract: OutputContract


SUMMARIZE_TEMPLATE = """Summarize this script in a single, concise sentence, focusing on the main plot or theme:

---

{script}"""


EXTRACT_CHARACTERS_TEMPLATE = """Analyze the script below to identify the main characters. For each character found, provide a detailed description including their appearance, personality, and significant traits.

**SCRIPT:**
{script}

**OUTPUT FORMATTING RULES:**
- For each character, use the following format exactly:
Character: [Character Name]
Description: [A paragraph describing the character.]
- Separate each character entry with a blank line.
- If the script contains no identifiable characters, the entire response must be only this exact marker, with nothing before or after it: {marker}"""


STORYBOARD_TEMPLATE = """You are an AI assistant director creating a storyboard. Generate image prompts based on the provided script and constraints.

**SCRIPT:**
{script}

**CONSTRAINTS:**
1. **Scenes per Paragraph:** Generate {scene_count} distinct image prompts for each major paragraph of the script.
2. **Art Style:** {art_style}
3. **Character Descriptions:**
{characters}
4. **Color Mood:** {color_mood}

**OUTPUT FORMAT:**
- Start each prompt with "Scene X:" where X is a sequential number starting at 1.
- Each prompt must be a detailed, single-paragraph description suitable for an image generation AI.
- Incorporate the art style, character details, and color mood into every prompt.
- Separate prompts with a blank line. Do not use any other headings, lists or formatting."""


ANIMATION_TEMPLATE = """Convert the following static storyboard prompts into dynamic animation prompts. For each scene, describe camera movements (e.g., pan, zoom in, tracking shot), character actions, and environmental effects.

**STORYBOARD PROMPTS:**
{storyboard_prompts}

**OUTPUT FORMAT:**
- Keep the "Scene X:" numbering exactly as given, in the same order.
- For each scene, write a new paragraph describing the animation."""


JSON_TEMPLATE = """Convert these animation prompts into a structured JSON array. Each object in the array represents a scene and must contain 'scene_number' (integer) and 'prompt' (string). Extract the scene number and the full animation prompt text for each, in order.

**ANIMATION PROMPTS:**
{animation_prompts}"""


NO_CHARACTERS_NOTE = "No named characters appear in this script; focus on setting and atmosphere."


def build_summarize(inputs: PromptInputs) -> BuiltPrompt:
    return BuiltPrompt(
        SUMMARIZE_TEMPLATE.format(script=inputs.script),
        OutputContract.plain_text()
    )


def build_extract_characters(inputs: PromptInputs) -> BuiltPrompt:
    return BuiltPrompt(
        EXTRACT_CHARACTERS_TEMPLATE.format(script=inputs.script, marker=NO_CHARACTERS_MARKER),
        OutputContract.plain_text()
    )


def build_storyboard(inputs: PromptInputs) -> BuiltPrompt:
    characters = NO_CHARACTERS_NOTE if is_no_characters(inputs.characters) else inputs.characters
    text = STORYBOARD_TEMPLATE.format(
        script=inputs.script,
        scene_count=inputs.scene_count,
        art_style=inputs.art_style,
        characters=characters,
        color_mood=inputs.color_mood.value,
    )
    # Latency-sensitive: skip extended reasoning
    return BuiltPrompt(text, OutputContract.plain_text(disable_thinking=True))


def build_animation(inputs: PromptInputs) -> BuiltPrompt:
    return BuiltPrompt(
        ANIMATION_TEMPLATE.format(storyboard_prompts=inputs.storyboard_prompts),
        OutputContract.plain_text()
    )


def build_json(inputs: PromptInputs) -> BuiltPrompt:
    return BuiltPrompt(
        JSON_TEMPLATE.format(animation_prompts=inputs.animation_prompts),
        OutputContract.json_with_schema(SCENE_ARRAY_SCHEMA)
    )


PROMPT_BUILDERS: Dict[Action, Callable[[PromptInputs], BuiltPrompt]] = {
    Action.ANALYZE_SCRIPT: build_summarize,
    Action.EXTRACT_CHARACTERS: build_extract_characters,
    Action.GENERATE_STORYBOARD: build_storyboard,
    Action.GENERATE_ANIMATION: build_animation,
    Action.GENERATE_JSON: build_json,
}


def build_prompt(action: Action, state: WorkflowState) -> BuiltPrompt:
    """
    Build the prompt for a generating action.

    Raises:
        ValueError: if the action makes no gateway call (SET_SCENE_COUNT, BACK, START_OVER)
    """
    builder = PROMPT_BUILDERS.get(action)
    if builder is None:
        raise ValueError(f"Action '{action.value}' has no prompt template")
    return builder(PromptInputs.from_state(state))
