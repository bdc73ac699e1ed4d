"""
Thin async wrapper around the google-genai SDK.
"""

import asyncio
import logging
import re

from google import genai
from google.genai import types

from config import GoogleAIConfig
from errors import GenerationError

logger = logging.getLogger(__name__)

JSON_OUTPUT_RULES = (
    "\n\n"
    "=== CRITICAL OUTPUT RULES ===\n"
    "1. Output MUST be ONLY valid JSON - nothing else\n"
    "2. Do NOT wrap JSON in markdown code blocks (no ```json or ```)\n"
    "3. Do NOT add any explanatory text before or after the JSON\n"
    "4. Start directly with { and end with }\n"
    "5. Ensure all strings are properly escaped\n"
)

FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
RAW_JSON = re.compile(r"(\{\s*\"[^\"]+\".*\})", re.DOTALL)


def extract_json(text: str) -> str:
    """
    Pull the JSON object out of a model reply.

    Tries a fenced code block, then the first raw object opening with a quoted
    key, then the whole reply if it starts with "{". Returns "" if none match.
    """
    match = FENCED_JSON.search(text)
    if match:
        return match.group(1).strip()

    match = RAW_JSON.search(text)
    if match:
        return match.group(1).strip()

    stripped = text.strip()
    if stripped.startswith("{"):
        return stripped
    return ""


class GeminiClient:
    def __init__(self, config: GoogleAIConfig, api_key: str):
        self.config = config
        self.client = genai.Client(api_key=api_key)

    def _generation_config(self, system_instruction: str) -> types.GenerateContentConfig:
        tools = [types.Tool(google_search=types.GoogleSearch())] if self.config.use_grounding else None
        return types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=0.7,
            top_k=40,
            top_p=0.95,
            max_output_tokens=8192,
            tools=tools,
            http_options=types.HttpOptions(timeout=int(self.config.timeout * 1000)),
        )

    async def generate_content(self, system_instruction: str, prompt: str) -> str:
        attempts = max(self.config.max_retries, 1)
        last_error = None

        for attempt in range(attempts):
            try:
                response = await self.client.aio.models.generate_content(
                    model=self.config.model,
                    contents=prompt,
                    config=self._generation_config(system_instruction),
                )
                text = response.text
                if not text:
                    raise GenerationError("empty response from Gemini")
                return text
            except Exception as e:
                last_error = e
                logger.warning(f"Gemini error (attempt {attempt + 1}/{attempts}): {e}")
                if attempt + 1 < attempts:
                    await asyncio.sleep(1)

        logger.error(f"Gemini failed after {attempts} attempts: {last_error}")
        if isinstance(last_error, GenerationError):
            raise last_error
        raise GenerationError(f"failed to generate content: {last_error}")

    async def generate_structured_content(self, system_instruction: str, prompt: str) -> str:
        """Same as generate_content, with JSON-only output rules appended to the instruction."""
        text = await self.generate_content(system_instruction + JSON_OUTPUT_RULES, prompt)
        logger.debug(f"Gemini structured response: {text[:200]}")
        return text
