"""
PromptShot LLM Module

Completion gateway abstraction and the Google Gemini implementation.
"""

from .gateway import (
    CompletionGateway,
    GeminiGateway,
    OutputContract,
    OutputFormat,
)

__all__ = [
    'CompletionGateway',
    'GeminiGateway',
    'OutputContract',
    'OutputFormat',
]
