"""
PromptShot Constants

Global constants used throughout the PromptShot workflow.
"""

from enum import Enum
from typing import Dict

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "PromptShot"

# =============================================================================
# LLM DEFAULTS
# =============================================================================
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"
DEFAULT_TIMEOUT_SECONDS = 60

DEFAULT_SERVICE_ERROR_MESSAGE = "An error occurred while communicating with the AI."

# =============================================================================
# WORKFLOW DEFAULTS
# =============================================================================
MIN_SCENE_COUNT = 1
MAX_SCENE_COUNT = 10
DEFAULT_SCENE_COUNT = 3

DEFAULT_ART_STYLE = "Cinematic realism, dark moody shadows, 4k"


class ColorMood(Enum):
    """Color mood options applied to every storyboard prompt."""
    DEFAULT = "Default"
    VIBRANT_AND_COLORFUL = "Vibrant and Colorful"
    DARK_AND_MOODY = "Dark and Moody"
    SEPIA_TONE = "Sepia Tone"
    BLACK_AND_WHITE = "Black and White"
    PASTEL = "Pastel"


# Whole-response marker the character extraction stage must return when the
# script has no identifiable characters.
NO_CHARACTERS_MARKER = "[NO_CHARACTERS]"

# =============================================================================
# EXPORT ARTIFACTS
# =============================================================================

class ArtifactKind(Enum):
    """Downloadable artifacts produced by the workflow."""
    STORYBOARD = "storyboard"
    ANIMATION = "animation"
    JSON = "json"


ARTIFACT_FILENAMES: Dict[ArtifactKind, str] = {
    ArtifactKind.STORYBOARD: "storyboard_prompts.txt",
    ArtifactKind.ANIMATION: "animation_prompts.txt",
    ArtifactKind.JSON: "video_prompts.json",
}

ARTIFACT_CONTENT_TYPES: Dict[ArtifactKind, str] = {
    ArtifactKind.STORYBOARD: "text/plain",
    ArtifactKind.ANIMATION: "text/plain",
    ArtifactKind.JSON: "application/json",
}

# Accepted upload type for the script intake stage
SCRIPT_UPLOAD_CONTENT_TYPE = "text/plain"
SCRIPT_UPLOAD_EXTENSION = ".txt"
