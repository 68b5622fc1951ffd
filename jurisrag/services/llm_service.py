"""Gemini-backed generation provider."""

import asyncio
import time
from typing import Any, Dict, List, Optional
from datetime import datetime, UTC

import google.generativeai as genai
from google.generativeai.types import HarmCategory, HarmBlockThreshold

from ..config import get_settings, LoggerMixin, Settings
from .providers import ChatMessage, GenerationError, GenerationOptions, GenerationProvider


class GeminiGenerationProvider(GenerationProvider, LoggerMixin):
    """Generation through Google Gemini with retry and basic statistics."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.api_key = self.settings.google_gemini_api_key
        self.model_name = self.settings.google_gemini_model
        self.max_retries = self.settings.google_gemini_max_retries

        if not self.api_key:
            raise GenerationError("GOOGLE_GEMINI_API_KEY not configured")

        genai.configure(api_key=self.api_key)

        self.safety_settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
        }

        self.stats = {
            'requests_made': 0,
            'tokens_generated': 0,
            'average_response_time': 0.0,
            'errors': 0,
            'last_activity': None
        }

    async def complete(
        self,
        system_prompt: str,
        messages: List[ChatMessage],
        options: GenerationOptions
    ) -> str:
        generation_config = genai.types.GenerationConfig(
            temperature=options.temperature,
            max_output_tokens=options.max_tokens,
            response_mime_type="application/json" if options.json_mode else "text/plain"
        )

        # A model per call: the system instruction differs per agent
        model = genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_prompt,
            generation_config=generation_config,
            safety_settings=self.safety_settings
        )

        contents = [
            {"role": "model" if m.role == "assistant" else "user", "parts": [m.content]}
            for m in messages
        ]

        start_time = time.time()
        try:
            response = await self._generate_with_retry(model, contents)
            text = response.text or ""
        except GenerationError:
            self.stats['errors'] += 1
            raise
        except Exception as e:
            # response.text raises when the candidate was blocked
            self.stats['errors'] += 1
            raise GenerationError(f"Gemini returned no usable text: {e}") from e

        self._update_stats(time.time() - start_time, len(text) // 4)
        return text

    async def _generate_with_retry(self, model, contents: List[Dict[str, Any]]):
        """Call Gemini with exponential backoff between attempts."""

        for attempt in range(self.max_retries):
            try:
                return await self._async_generate(model, contents)
            except Exception as e:
                if attempt == self.max_retries - 1:
                    raise GenerationError(
                        f"Generation failed after {self.max_retries} attempts: {e}"
                    ) from e

                self.logger.warning(f"Gemini attempt {attempt + 1} failed: {e}")
                await asyncio.sleep(2 ** attempt)

        raise GenerationError("Unexpected error in generation")

    async def _async_generate(self, model, contents: List[Dict[str, Any]]):
        """Run the blocking Gemini client in the default executor."""

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, model.generate_content, contents)

    def _update_stats(self, generation_time: float, token_count: int) -> None:
        self.stats['requests_made'] += 1
        self.stats['tokens_generated'] += token_count
        self.stats['last_activity'] = datetime.now(UTC)

        if self.stats['requests_made'] == 1:
            self.stats['average_response_time'] = generation_time
        else:
            alpha = 0.1
            self.stats['average_response_time'] = (
                alpha * generation_time +
                (1 - alpha) * self.stats['average_response_time']
            )

    def get_service_stats(self) -> Dict[str, Any]:
        stats = self.stats.copy()
        stats.update({
            'model_name': self.model_name,
            'success_rate': (
                self.stats['requests_made'] /
                max(1, self.stats['requests_made'] + self.stats['errors']) * 100
            )
        })
        return stats
