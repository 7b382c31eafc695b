"""Shared fixtures: a scripted oracle double and a fixed clock."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import pytest
import pytz
from fastapi.testclient import TestClient

from calsnap.main import create_app
from calsnap.oracle.client import MediaUpload, OracleClient

NOW = datetime(2025, 6, 10, 0, 0, 0, tzinfo=pytz.UTC)


class FakeOracle(OracleClient):
    """Returns scripted responses in order; an Exception entry is raised instead."""

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None) -> None:
        self.responses = list(responses or [])
        self.prompts: List[str] = []
        self.media: List[MediaUpload] = []
        self.closed = False

    def _next(self) -> str:
        if not self.responses:
            raise AssertionError("FakeOracle has no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self._next()

    async def complete_with_media(self, prompt: str, media: MediaUpload) -> str:
        self.prompts.append(prompt)
        self.media.append(media)
        return self._next()

    def describe(self) -> Dict[str, Any]:
        return {"client": "fake", "api_key": "configured"}

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def client(fake_oracle: FakeOracle) -> TestClient:
    return TestClient(create_app(oracle=fake_oracle))
