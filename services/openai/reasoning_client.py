"""Text and vision completions through OpenAI's Responses API."""

import logging
import time
from typing import Optional

from openai import AsyncOpenAI

from services.openai.media_inputs import build_inputs
from services.openai.response_parser import extract_text, extract_usage

LOGGER = logging.getLogger(__name__)
DEFAULT_MODEL = "gpt-4o-mini"


class ReasoningClient:
    """Submit a prompt, with an optional image, and return the model's free-form text."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODEL) -> None:
        """Initialize the client wrapper with a shared OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        image_bytes: Optional[bytes] = None,
        mime_type: Optional[str] = None,
        max_output_tokens: int = 1000,
    ) -> str:
        """Run one completion and return its text.

        Raises:
            RuntimeError: If the response carries no text.
            openai.OpenAIError: If the API call itself fails.
        """
        inputs = build_inputs(system_prompt, user_prompt, image_bytes=image_bytes, mime_type=mime_type)
        start = time.time()
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=inputs,
                max_output_tokens=max_output_tokens,
            )
        except Exception as exc:
            LOGGER.error("Error during OpenAI Responses API call: %s", exc)
            raise

        usage = extract_usage(response)
        LOGGER.info(
            "Completion latency: %.3fs (input_tokens=%s, output_tokens=%s)",
            time.time() - start,
            usage["input_tokens"],
            usage["output_tokens"],
        )

        text = extract_text(response)
        if not text or not text.strip():
            raise RuntimeError("Completion response did not include text.")
        return text
