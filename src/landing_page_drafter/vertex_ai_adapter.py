from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import vertexai
from pydantic import BaseModel, ValidationError
from vertexai.generative_models import GenerationConfig, GenerativeModel

logger = logging.getLogger(__name__)


class GenerativeBackend(Protocol):
    async def invoke(self, prompt: str, output_schema: type[BaseModel]) -> dict[str, Any] | None:
        """Return an object conforming to ``output_schema``, or ``None`` when none was produced."""
        ...


class VertexAIAdapter:
    """Adapter for Vertex AI Gemini models."""

    def __init__(
        self,
        *,
        project_id: str,
        location: str = "asia-northeast1",
        model_name: str = "gemini-1.5-pro",
        temperature: float = 0.7,
        max_output_tokens: int = 8192,
    ) -> None:
        """Initialize Vertex AI adapter.

        Args:
            project_id: GCP project ID
            location: Vertex AI location
            model_name: Model name (e.g., "gemini-1.5-pro")
            temperature: Default sampling temperature (0.0 - 1.0)
            max_output_tokens: Maximum output tokens per call
        """
        self.project_id = project_id
        self.location = location
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

        vertexai.init(project=project_id, location=location)
        self.model = GenerativeModel(model_name)

    async def generate_content(
        self,
        prompt: str,
        *,
        temperature: float | None = None,
        response_format: str | None = None,
    ) -> str:
        """Generate content using Vertex AI.

        Args:
            prompt: Input prompt
            temperature: Sampling temperature, defaults to the adapter's
            response_format: Optional response format ("json" for JSON mode)

        Returns:
            Generated text
        """
        generation_config = GenerationConfig(
            temperature=self.temperature if temperature is None else temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json" if response_format == "json" else None,
        )

        response = await self.model.generate_content_async(
            prompt,
            generation_config=generation_config,
        )

        generated_text = response.text

        logger.info(
            "Generated content with Vertex AI",
            extra={
                "model": self.model_name,
                "input_length": len(prompt),
                "output_length": len(generated_text),
            },
        )

        return generated_text

    async def generate_json(self, prompt: str, *, temperature: float | None = None) -> Any:
        """Generate a JSON response and parse it.

        Raises:
            ValueError: The model did not return valid JSON.
        """
        response = await self.generate_content(
            prompt,
            temperature=temperature,
            response_format="json",
        )
        return parse_json_response(response)

    async def invoke(self, prompt: str, output_schema: type[BaseModel]) -> dict[str, Any] | None:
        """Generate an object for ``output_schema``.

        The schema is appended to the prompt. Output that does not parse or does
        not validate is treated as absent: the failure is logged and ``None`` is
        returned. Only the fields the model actually produced are returned so
        callers can merge them over existing content.
        """
        schema_json = json.dumps(output_schema.model_json_schema(by_alias=True), ensure_ascii=False)
        full_prompt = (
            f"{prompt}\n\nRespond with a single JSON object that conforms to this JSON schema:\n"
            f"{schema_json}\n\nPlease respond with valid JSON only."
        )

        try:
            result = await self.generate_json(full_prompt)
        except ValueError:
            logger.error(
                "Failed to parse JSON response",
                exc_info=True,
                extra={"schema": output_schema.__name__},
            )
            return None
        except Exception:
            logger.error(
                "Vertex AI generation failed",
                exc_info=True,
                extra={"schema": output_schema.__name__, "model": self.model_name},
            )
            return None

        if not isinstance(result, dict):
            logger.warning(
                "Unexpected JSON structure from Vertex AI",
                extra={"schema": output_schema.__name__, "result_type": type(result).__name__},
            )
            return None

        try:
            validated = output_schema.model_validate(result)
        except ValidationError as exc:
            logger.warning(
                "Vertex AI output failed schema validation",
                extra={"schema": output_schema.__name__, "errors": exc.error_count()},
            )
            return None

        return validated.model_dump(mode="json", by_alias=True, exclude_unset=True)


def parse_json_response(response: str) -> Any:
    """Parse model output, stripping markdown code fences if present."""
    text = response.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]

    try:
        return json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON response: {exc}") from exc


__all__ = ["GenerativeBackend", "VertexAIAdapter", "parse_json_response"]
