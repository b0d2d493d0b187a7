"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import List, Optional

from promptshot.core.config import PromptShotConfig
from promptshot.llm.gateway import CompletionGateway, OutputContract
from promptshot.workflow import Action, Stage, StageEngine


SAMPLE_SCRIPT = """The storm rolled in over the cliffs as Mara lit the lighthouse lamp for the last time.

Far below, Tomas fought the wheel of a fishing boat that had lost its way in the dark."""

SUMMARY = "A lighthouse keeper guides a lost sailor home through a deadly storm."

CHARACTERS = """Character: Mara
Description: A weathered lighthouse keeper in her sixties with a grey braid and a stubborn streak.

Character: Tomas
Description: A young, frightened fisherman on his first solo voyage."""

STORYBOARD = """Scene 1: Mara climbs the spiral stairs of the lighthouse, lantern in hand, cinematic realism, dark moody shadows.

Scene 2: Tomas grips the wheel of his boat as waves crash over the bow, lit by a distant beam."""

ANIMATION = """Scene 1: Slow upward tracking shot following Mara up the stairs as the lantern flickers.

Scene 2: Handheld camera sways with the boat while rain lashes across the frame."""

JSON_RESPONSE = '[{"scene_number":1,"prompt":"Slow upward tracking shot"},{"scene_number":2,"prompt":"Handheld camera sways"}]'

# Gateway response consumed by each generating action
STAGE_RESPONSES = {
    Action.ANALYZE_SCRIPT: SUMMARY,
    Action.EXTRACT_CHARACTERS: CHARACTERS,
    Action.GENERATE_STORYBOARD: STORYBOARD,
    Action.GENERATE_ANIMATION: ANIMATION,
    Action.GENERATE_JSON: JSON_RESPONSE,
}

# Forward action taken from each stage
FORWARD_ACTIONS = {
    Stage.SCRIPT_INTAKE: Action.ANALYZE_SCRIPT,
    Stage.PACING: Action.SET_SCENE_COUNT,
    Stage.ART_STYLE: Action.EXTRACT_CHARACTERS,
    Stage.REVIEW: Action.GENERATE_STORYBOARD,
    Stage.STORYBOARD_RESULT: Action.GENERATE_ANIMATION,
    Stage.ANIMATION_RESULT: Action.GENERATE_JSON,
}


class ScriptedGateway(CompletionGateway):
    """Gateway returning queued responses; exceptions in the queue are raised."""

    def __init__(self, responses: Optional[list] = None):
        self.responses = list(responses or [])
        self.calls: List[tuple] = []

    async def complete(self, prompt: str, contract: Optional[OutputContract] = None) -> str:
        self.calls.append((prompt, contract))
        if not self.responses:
            raise AssertionError("Unexpected gateway call")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


async def advance_to(engine: StageEngine, gateway: ScriptedGateway, stage: Stage) -> None:
    """Drive the engine forward from its current stage to `stage` with canned responses."""
    if not engine.state.script:
        engine.state.script = SAMPLE_SCRIPT
    while engine.state.stage < stage:
        action = FORWARD_ACTIONS[engine.state.stage]
        if action in STAGE_RESPONSES:
            gateway.responses.append(STAGE_RESPONSES[action])
        result = await engine.trigger(action)
        assert result.success, result.error


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def engine(gateway) -> StageEngine:
    return StageEngine(gateway)


@pytest.fixture
def sample_config() -> dict:
    """Sample configuration for testing."""
    return {
        "project_name": "PromptShot",
        "version": "1.0.0",
        "llm": {
            "model": "gemini-2.5-flash",
            "api_key_env": "GEMINI_API_KEY",
            "timeout": 30
        },
        "workflow": {
            "default_scene_count": 4,
            "default_art_style": "Watercolor, soft light",
            "default_color_mood": "Pastel"
        },
        "server": {
            "port": 9000,
            "rate_limit_enabled": False
        }
    }


@pytest.fixture
def test_config() -> PromptShotConfig:
    config = PromptShotConfig()
    config.server.rate_limit_enabled = False
    return config
