import pytest

import narrative_service
from tests.fakes import FakeChatClient


@pytest.fixture
def fake_client():
    return FakeChatClient()


@pytest.fixture(autouse=True)
def no_azure_credentials(monkeypatch):
    monkeypatch.delenv("AZURE_AI_ENDPOINT", raising=False)
    monkeypatch.delenv("AZURE_AI_KEY", raising=False)
    monkeypatch.setattr(narrative_service, "_client", None)
    monkeypatch.setattr(narrative_service, "load_credentials", lambda: (None, None))
