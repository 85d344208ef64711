"""
Document Extraction Providers

DESIGN DECISION: The pipeline talks to an abstract provider. A provider
only moves an ExtractionRequest over the wire and hands back raw text.
It does not parse, repair or classify anything; that is the pipeline's
job, so every provider gets the same guarantees.

Providers:
1. GeminiExtractionProvider - Google Generative AI (default)
2. Anything else implementing DocumentExtractionProvider (tests use a fake)
"""

from abc import ABC, abstractmethod
from typing import Optional

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from nairasync.config import GeminiSettings, get_settings
from nairasync.models.transaction import ExtractionRequest


class ProviderResponseError(Exception):
    """Provider answered, but the answer is unusable (e.g. blocked)."""
    pass


class DocumentExtractionProvider(ABC):
    """
    Abstract interface for a generative document-understanding backend.

    Implementations may raise any exception on transport, auth, quota or
    model errors; the pipeline classifies them by their text.
    """

    name: str = "provider"

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True if a credential is available."""
        pass

    @abstractmethod
    async def generate(self, request: ExtractionRequest) -> Optional[str]:
        """
        Run one extraction request.

        Returns:
            The raw text payload, or None/empty string if the
            provider produced no text at all
        """
        pass


SAFETY_CATEGORIES = [
    HarmCategory.HARM_CATEGORY_HATE_SPEECH,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    HarmCategory.HARM_CATEGORY_HARASSMENT,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
]


class GeminiExtractionProvider(DocumentExtractionProvider):
    """
    Extraction provider backed by Gemini.

    When the request disables safety filtering, every harm category is
    sent with BLOCK_NONE.
    """

    name = "gemini"

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        if self._settings.api_key:
            genai.configure(api_key=self._settings.api_key)

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def _safety_settings(self, disable_filters: bool) -> Optional[dict]:
        if not disable_filters:
            return None
        return {category: HarmBlockThreshold.BLOCK_NONE for category in SAFETY_CATEGORIES}

    def _build_model(self, request: ExtractionRequest) -> genai.GenerativeModel:
        return genai.GenerativeModel(
            model_name=request.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "response_mime_type": "application/json",
                "response_schema": request.response_schema,
            },
            safety_settings=self._safety_settings(request.disable_safety_filters),
        )

    async def generate(self, request: ExtractionRequest) -> Optional[str]:
        # genai.configure is process-global; re-apply our key per request
        self._configure_genai()
        model = self._build_model(request)

        response = await model.generate_content_async([
            {"mime_type": request.mime_type, "data": request.document},
            request.prompt,
        ])

        feedback = getattr(response, "prompt_feedback", None)
        if feedback is not None and feedback.block_reason:
            raise ProviderResponseError(
                f"Prompt blocked by safety filters: {feedback.block_reason.name}"
            )

        if not response.candidates:
            return None

        candidate = response.candidates[0]
        if candidate.finish_reason.name == "SAFETY":
            raise ProviderResponseError("Response blocked by safety filters")

        # MAX_TOKENS still carries the partial text; the parser repairs it
        parts = candidate.content.parts if candidate.content else []
        text = "".join(part.text for part in parts if getattr(part, "text", None))
        return text or None
