"""
PromptShot Workflow Module

The staged generation pipeline: workflow state, prompt templates, the stage
engine and the file import/export boundary.
"""

from .state import (
    Action,
    Stage,
    WorkflowState,
    allowed_actions,
    clamp_scene_count,
    next_stage,
)
from .prompts import (
    BuiltPrompt,
    CharacterRecord,
    PromptInputs,
    ScenePrompt,
    build_prompt,
    count_scenes,
    is_sequential,
    format_scene_array,
    parse_characters,
    parse_scene_array,
    parse_scene_numbers,
)
from .engine import StageEngine, StageResult
from .files import ExportArtifact, export_artifact, read_script_upload

__all__ = [
    'Action',
    'Stage',
    'WorkflowState',
    'allowed_actions',
    'clamp_scene_count',
    'next_stage',
    'BuiltPrompt',
    'CharacterRecord',
    'PromptInputs',
    'ScenePrompt',
    'build_prompt',
    'count_scenes',
    'is_sequential',
    'format_scene_array',
    'parse_characters',
    'parse_scene_array',
    'parse_scene_numbers',
    'StageEngine',
    'StageResult',
    'ExportArtifact',
    'export_artifact',
    'read_script_upload',
]
