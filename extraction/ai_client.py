"""
Text generation capability used by the AI extraction strategy.

The strategy only depends on TextGenerator.generate(prompt) -> str, so tests
and other providers can stand in for Gemini.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import google.generativeai as genai

from extraction.config import ExtractionConfig
from extraction.exceptions import AIServiceError


logger = logging.getLogger(__name__)


class TextGenerator(ABC):
    """Turns a prompt into generated text."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Raises:
            AIServiceError: If the service cannot produce a response
        """
        pass


class GeminiTextGenerator(TextGenerator):
    """TextGenerator backed by Google Gemini."""

    def __init__(self, api_key: str, model_name: str = 'gemini-2.0-flash',
                 temperature: float = 0.1, max_output_tokens: int = 8000):
        if not api_key:
            raise AIServiceError("Gemini API key is not configured", model_name=model_name)

        self.model_name = model_name
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=model_name,
            generation_config={
                'temperature': temperature,
                'max_output_tokens': max_output_tokens,
            },
        )

    def generate(self, prompt: str) -> str:
        logger.debug(f"Calling {self.model_name} with {len(prompt)} prompt characters")
        try:
            response = self.model.generate_content(prompt)
            text = response.text
        except Exception as e:
            raise AIServiceError(f"Gemini request failed: {e}",
                                 model_name=self.model_name, original_error=e) from e

        if not text or not text.strip():
            raise AIServiceError("Gemini returned an empty response", model_name=self.model_name)
        return text


def create_text_generator(config: ExtractionConfig) -> Optional[TextGenerator]:
    """
    Create the configured text generator.

    Returns:
        A GeminiTextGenerator, or None when AI is disabled or no usable API key
        is configured (manual extraction is then the primary strategy)
    """
    if not config.use_ai:
        logger.info("AI extraction disabled; using manual extraction")
        return None
    if not config.has_api_key:
        logger.info("No Gemini API key configured; using manual extraction")
        return None

    return GeminiTextGenerator(
        api_key=config.api_key,
        model_name=config.model_name,
        temperature=config.temperature,
        max_output_tokens=config.max_output_tokens,
    )
