"""
Shared fixtures.

No real API calls in tests: extraction goes through FakeProvider, which
replays a queue of canned responses (or exceptions) and records requests.
"""

from typing import Optional, Union

import pytest

from nairasync.audit import AuditLogger
from nairasync.config import AppSettings, GeminiSettings
from nairasync.models.transaction import ExtractionRequest
from nairasync.services.extraction import DocumentExtractionProvider, ExtractionPipeline


SALARY_ROW = '{"date": "2024-01-05", "description": "Salary Jan", "amount": 600000, "type": "CREDIT"}'
BONUS_ROW = '{"date": "2024-01-20", "description": "Bonus", "amount": 400000, "type": "CREDIT"}'
RENT_ROW = '{"date": "2024-01-07", "description": "Rent", "amount": 250000, "type": "DEBIT"}'


class FakeProvider(DocumentExtractionProvider):
    """In-memory provider returning queued responses in order."""

    name = "fake"

    def __init__(
        self,
        responses: Optional[list[Union[str, None, Exception]]] = None,
        configured: bool = True,
    ):
        self._responses = list(responses or [])
        self._configured = configured
        self.requests: list[ExtractionRequest] = []

    @property
    def is_configured(self) -> bool:
        return self._configured

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def generate(self, request: ExtractionRequest) -> Optional[str]:
        self.requests.append(request)
        response = self._responses.pop(0) if self._responses else None
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def gemini_settings():
    return GeminiSettings(
        api_key="test-key",
        fast_model_name="fast-model",
        high_capacity_model_name="pro-model",
    )


@pytest.fixture
def app_settings():
    return AppSettings(
        max_upload_size_mb=50,
        large_document_threshold_mb=1,
    )


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def make_pipeline(gemini_settings, app_settings, audit_logger):
    """Build a pipeline around a FakeProvider with the given responses."""

    def _make(*responses, configured: bool = True):
        provider = FakeProvider(list(responses), configured=configured)
        pipeline = ExtractionPipeline(
            provider=provider,
            app_settings=app_settings,
            gemini_settings=gemini_settings,
            audit_logger=audit_logger,
        )
        return pipeline, provider

    return _make
