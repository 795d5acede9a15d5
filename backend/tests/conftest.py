import types

import pytest
from fastapi.testclient import TestClient


class FakeOpenAI:
    """Stands in for ``AsyncOpenAI`` and records every completion request."""

    def __init__(self):
        self.reply = "ok"
        self.error = None
        self.calls = []
        self.init_kwargs = []
        self.opened = 0
        self.closed = 0

    def __call__(self, **kwargs):
        self.init_kwargs.append(kwargs)
        return _FakeClient(self)

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = types.SimpleNamespace(content=self.reply)
        return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)])

    @property
    def last_instruction(self):
        return self.calls[-1]["messages"][-1]["content"]


class _FakeClient:
    def __init__(self, owner):
        self._owner = owner
        self.chat = types.SimpleNamespace(completions=types.SimpleNamespace(create=owner._create))

    async def __aenter__(self):
        self._owner.opened += 1
        return self

    async def __aexit__(self, *exc_info):
        self._owner.closed += 1
        return False


@pytest.fixture
def fake_openai(monkeypatch):
    import latex_assistant.services.generation as gen

    fake = FakeOpenAI()
    monkeypatch.setattr(gen, "AsyncOpenAI", fake)
    return fake


@pytest.fixture
def api_env(monkeypatch):
    monkeypatch.setenv("DOTENV_DISABLED", "1")
    monkeypatch.setenv("OPENAI_API_KEY", "test")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-test")
    monkeypatch.setenv("API_AUTH_TOKENS", "secret-token")
    monkeypatch.delenv("AUTH_DISABLED", raising=False)
    monkeypatch.delenv("TEMPLATES_PATH", raising=False)


@pytest.fixture
def client(api_env, fake_openai):
    from latex_assistant.app import create_app

    with TestClient(create_app()) as c:
        yield c


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer secret-token"}
