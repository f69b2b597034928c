"""
Translator Module
Prompt construction and the Gemini generateContent backend
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..utils.config import DEFAULT_API_BASE, DEFAULT_MODEL_NAME
from ..utils.errors import RemoteError, TranslationError


DEFAULT_PROMPT_TEMPLATE = (
    "Translate this text to {target_language}. Translate ALL non-{target_language} "
    "parts of the text, including English and any other languages. Keep "
    "{target_language} text unchanged. Preserve all formatting (bold, italic, etc.) "
    "and line breaks. Return ONLY the result, without any additional text, markers, "
    "or explanations:\n\n{text}"
)


class GenerationBackend:
    """Text generation capability used by the Translator"""

    def generate(self, model: str, prompt: str) -> List[str]:
        """
        Run one generation request.

        Returns:
            Text of each candidate, in the order the backend returned them

        Raises:
            RemoteError: If the request fails
        """
        raise NotImplementedError


class GeminiBackend(GenerationBackend):
    """GenerationBackend calling the Gemini REST API"""

    def __init__(self, api_key: str, api_base: str = DEFAULT_API_BASE, timeout: float = 60.0):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.logger = logging.getLogger("GeminiBackend")

    def generate(self, model: str, prompt: str) -> List[str]:
        url = f"{self.api_base}/models/{model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            response = requests.post(
                url,
                json=payload,
                headers={
                    'Content-Type': 'application/json',
                    'x-goog-api-key': self.api_key,
                },
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RemoteError(f"Gemini request failed: {e}") from e

        if response.status_code != 200:
            raise RemoteError(
                f"Gemini returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteError(f"Gemini returned invalid JSON: {e}") from e

        return self._candidate_texts(data)

    @staticmethod
    def _candidate_texts(data: Dict[str, Any]) -> List[str]:
        texts = []
        for candidate in data.get("candidates") or []:
            parts = (candidate.get("content") or {}).get("parts") or []
            texts.append("".join(part.get("text", "") for part in parts))
        return texts


class Translator:
    """Translates message bodies into the configured target language"""

    def __init__(
        self,
        backend: GenerationBackend,
        target_language: str,
        prompt_template: Optional[str] = None,
        model_name: Optional[str] = None,
    ):
        """
        Initialize translator

        Args:
            backend: Generation capability (Gemini in production)
            target_language: Language name substituted into the prompt
            prompt_template: Template with {target_language} and {text}
                placeholders; the built-in template is used when empty
            model_name: Model identifier passed to the backend
        """
        self.backend = backend
        self.target_language = target_language
        self.prompt_template = prompt_template or DEFAULT_PROMPT_TEMPLATE
        self.model_name = model_name or DEFAULT_MODEL_NAME
        self.logger = logging.getLogger("Translator")

    def build_prompt(self, text: str) -> str:
        # Plain substitution; braces elsewhere in the template or text stay literal
        prompt = self.prompt_template.replace("{target_language}", self.target_language)
        return prompt.replace("{text}", text)

    def translate(self, text: str) -> str:
        """
        Translate text

        Returns:
            Translated text with surrounding whitespace removed

        Raises:
            TranslationError: If the text is empty, the backend call fails, or
                the backend produced no usable candidate
        """
        if not text or not text.strip():
            raise TranslationError("Nothing to translate: message body is empty")

        try:
            candidates = self.backend.generate(self.model_name, self.build_prompt(text))
        except RemoteError as e:
            raise TranslationError(f"Translation request failed: {e}") from e

        if not candidates:
            raise TranslationError("Translation returned no candidates")

        translated = candidates[0].strip()
        if not translated:
            raise TranslationError("Translation returned an empty result")

        self.logger.debug(f"Translated {len(text)} chars into {len(translated)} chars")
        return translated
