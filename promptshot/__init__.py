"""
PromptShot - AI First Assistant Director for Storyboards

Guides a script through a seven-stage workflow: summary, scene pacing, art
style, character review, storyboard image prompts, animation prompts and
structured JSON video prompts.

Version: 1.0.0
"""

__version__ = "1.0.0"
__project__ = "PromptShot"
