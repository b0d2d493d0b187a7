"""
PromptShot File Boundary

Script import from uploaded plain-text files and export of the workflow's
downloadable artifacts.
"""

import codecs
from dataclasses import dataclass
from typing import Optional, Union

from promptshot.core.constants import (
    ARTIFACT_CONTENT_TYPES,
    ARTIFACT_FILENAMES,
    ArtifactKind,
    SCRIPT_UPLOAD_CONTENT_TYPE,
    SCRIPT_UPLOAD_EXTENSION,
)
from promptshot.core.exceptions import InputValidationError
from promptshot.core.logging_config import get_logger
from .state import WorkflowState

logger = get_logger("workflow.files")

INVALID_UPLOAD_MESSAGE = "Please upload a valid .txt file."

ARTIFACT_SOURCE_FIELDS = {
    ArtifactKind.STORYBOARD: "storyboard_prompts",
    ArtifactKind.ANIMATION: "animation_prompts",
    ArtifactKind.JSON: "json_prompts",
}


@dataclass
class ExportArtifact:
    """A downloadable file produced from the workflow state."""
    content: str
    filename: str
    content_type: str

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")


def read_script_upload(
    data: bytes,
    content_type: Optional[str],
    filename: Optional[str] = None
) -> str:
    """
    Decode an uploaded script file.

    Only plain text is accepted. A missing content type is tolerated when the
    filename carries the .txt extension.

    Raises:
        InputValidationError: for non-plain-text or undecodable uploads
    """
    media_type = (content_type or "").split(";")[0].strip().lower()
    has_txt_name = bool(filename) and filename.lower().endswith(SCRIPT_UPLOAD_EXTENSION)

    if media_type != SCRIPT_UPLOAD_CONTENT_TYPE and not (not media_type and has_txt_name):
        logger.warning(f"Rejected upload {filename!r} with content type {content_type!r}")
        raise InputValidationError(
            INVALID_UPLOAD_MESSAGE, {"content_type": content_type, "filename": filename}
        )

    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8):]
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"Rejected upload {filename!r}: not UTF-8 text")
        raise InputValidationError(INVALID_UPLOAD_MESSAGE, {"filename": filename})

    logger.info(f"Loaded script upload {filename!r} ({len(text)} chars)")
    return text


def export_artifact(state: WorkflowState, kind: Union[ArtifactKind, str]) -> ExportArtifact:
    """
    Build a downloadable artifact from the state.

    Raises:
        InputValidationError: if the kind is unknown or its content is not produced yet
    """
    try:
        kind = ArtifactKind(kind) if not isinstance(kind, ArtifactKind) else kind
    except ValueError:
        raise InputValidationError(f"Unknown export type: {kind}")

    content = getattr(state, ARTIFACT_SOURCE_FIELDS[kind])
    if not content:
        raise InputValidationError(f"Nothing to export yet for {kind.value} prompts")

    return ExportArtifact(
        content=content,
        filename=ARTIFACT_FILENAMES[kind],
        content_type=ARTIFACT_CONTENT_TYPES[kind],
    )
