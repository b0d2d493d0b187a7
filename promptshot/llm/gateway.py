"""
PromptShot Completion Gateway

Single-attempt access to the generative text/JSON service.

A gateway takes a prompt and an output contract (plain text, or JSON
constrained by a schema) and returns the response text, or raises
ServiceError. Retries are never performed here; a failed attempt surfaces
immediately to the caller.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from google import genai
from google.genai import types

from promptshot.core.config import LLMConfig
from promptshot.core.constants import DEFAULT_MODEL
from promptshot.core.env_loader import get_google_api_key
from promptshot.core.exceptions import MissingConfigError, ServiceError
from promptshot.core.logging_config import get_logger

logger = get_logger("llm.gateway")

# Finish reasons that mean the provider withheld the content
BLOCKED_FINISH_REASONS = {"SAFETY", "RECITATION", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}


class OutputFormat(Enum):
    """Shape of the response requested from the gateway."""
    PLAIN_TEXT = "plain_text"
    JSON = "json"


@dataclass(frozen=True)
class OutputContract:
    """Output contract for a single completion request."""
    format: OutputFormat = OutputFormat.PLAIN_TEXT
    schema: Optional[Dict[str, Any]] = None
    disable_thinking: bool = False  # latency hint for the provider

    def __post_init__(self):
        if self.format == OutputFormat.JSON and not self.schema:
            raise ValueError("A JSON output contract requires a schema")

    @classmethod
    def plain_text(cls, disable_thinking: bool = False) -> 'OutputContract':
        return cls(OutputFormat.PLAIN_TEXT, None, disable_thinking)

    @classmethod
    def json_with_schema(cls, schema: Dict[str, Any], disable_thinking: bool = False) -> 'OutputContract':
        return cls(OutputFormat.JSON, schema, disable_thinking)

    @property
    def is_json(self) -> bool:
        return self.format == OutputFormat.JSON


class CompletionGateway(ABC):
    """Abstract completion gateway."""

    @abstractmethod
    async def complete(self, prompt: str, contract: Optional[OutputContract] = None) -> str:
        """
        Submit a prompt and return the response text.

        Raises:
            ServiceError: on any transport, authentication, or service-side failure
        """
        pass


class GeminiGateway(CompletionGateway):
    """Google Gemini gateway built on the google-genai SDK."""

    PROVIDER = "google"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        temperature: Optional[float] = None,
        timeout: Optional[int] = None,
        client: Optional[genai.Client] = None
    ):
        """
        Initialize the gateway.

        Args:
            api_key: Gemini API key
            model: Model identifier
            temperature: Optional sampling temperature
            timeout: Optional request timeout in seconds
            client: Pre-built SDK client (mainly for tests)
        """
        if client is None:
            if not api_key:
                raise MissingConfigError("GeminiGateway requires an API key")
            http_options = types.HttpOptions(timeout=timeout * 1000) if timeout else None
            client = genai.Client(api_key=api_key, http_options=http_options)
        self._client = client
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_env(cls, config: Optional[LLMConfig] = None) -> 'GeminiGateway':
        """Build a gateway, resolving credentials from the environment."""
        config = config or LLMConfig()
        api_key = get_google_api_key(config.api_key_env)
        if not api_key:
            raise MissingConfigError(
                f"API key not found: set {config.api_key_env} (or GOOGLE_API_KEY) in the environment or .env",
                {"api_key_env": config.api_key_env}
            )
        logger.info(f"Gemini gateway configured for model {config.model}")
        return cls(api_key, model=config.model, temperature=config.temperature, timeout=config.timeout)

    def _build_config(self, contract: OutputContract) -> types.GenerateContentConfig:
        kwargs: Dict[str, Any] = {}
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if contract.is_json:
            kwargs["response_mime_type"] = "application/json"
            kwargs["response_schema"] = contract.schema
        if contract.disable_thinking:
            kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=0)
        return types.GenerateContentConfig(**kwargs)

    async def complete(self, prompt: str, contract: Optional[OutputContract] = None) -> str:
        contract = contract or OutputContract.plain_text()
        logger.debug(f"Requesting {contract.format.value} completion from {self.model} ({len(prompt)} chars)")

        try:
            response = await asyncio.to_thread(
                self._client.models.generate_content,
                model=self.model,
                contents=prompt,
                config=self._build_config(contract),
            )
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise ServiceError(str(e) or None, provider=self.PROVIDER) from e

        return self._extract_text(response)

    def _extract_text(self, response: Any) -> str:
        candidates = getattr(response, "candidates", None)
        if not candidates:
            block_reason = "UNKNOWN"
            feedback = getattr(response, "prompt_feedback", None)
            if feedback is not None and getattr(feedback, "block_reason", None):
                block_reason = _enum_name(feedback.block_reason)
            logger.warning(f"Gemini returned no candidates: block_reason={block_reason}")
            raise ServiceError(
                f"The AI declined to respond (block reason: {block_reason}).",
                provider=self.PROVIDER
            )

        finish_reason = _enum_name(getattr(candidates[0], "finish_reason", None))
        if finish_reason in BLOCKED_FINISH_REASONS:
            logger.warning(f"Gemini blocked content: finish_reason={finish_reason}")
            raise ServiceError(
                f"The AI response was blocked (finish reason: {finish_reason}).",
                provider=self.PROVIDER
            )

        text = response.text or ""
        if not text.strip():
            logger.warning(f"Gemini returned empty content: finish_reason={finish_reason}")
            raise ServiceError("The AI returned an empty response.", provider=self.PROVIDER)
        return text


def _enum_name(value: Any) -> str:
    if value is None:
        return ""
    return getattr(value, "name", str(value))
