import pytest
from fastapi.testclient import TestClient

from groupchat.api import create_app
from groupchat.errors import ConfigurationMissing, UpstreamFailure

ENV = {"OPENAI_API_KEY": "sk-test", "ANTHROPIC_API_KEY": "ak-test"}


class FakeGenerate:
    def __init__(self, result="Generated text", error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def __call__(self, provider, api_key, model, messages):
        self.calls.append((provider, api_key, model, messages))
        if self.error:
            raise self.error
        return self.result


def _client(fake=None, env=ENV):
    return TestClient(create_app(generate_fn=fake or FakeGenerate(), env=env))


def test_health():
    r = _client().get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_generate_success_assembles_messages():
    fake = FakeGenerate()
    r = _client(fake).post(
        "/generate",
        json={"provider": "anthropic", "model": "claude", "system": "sys", "context": "ctx", "prompt": "go"},
    )
    assert r.status_code == 200
    assert r.json() == {"ok": True, "content": "Generated text"}
    provider, api_key, model, messages = fake.calls[0]
    assert (provider, api_key, model) == ("anthropic", "ak-test", "claude")
    assert [m["role"] for m in messages] == ["system", "user", "user"]
    assert messages[-1]["content"] == "go"


def test_generate_without_optional_fields():
    fake = FakeGenerate()
    r = _client(fake).post("/generate", json={"provider": "openai", "model": "gpt-4o-mini", "prompt": "go"})
    assert r.status_code == 200
    assert fake.calls[0][3] == [{"role": "user", "content": "go"}]


@pytest.mark.parametrize(
    "body,needle",
    [
        ({"model": "m", "prompt": "p"}, "Invalid provider"),
        ({"provider": "cohere", "model": "m", "prompt": "p"}, "Invalid provider"),
        ({"provider": "openai", "prompt": "p"}, "Model is required"),
        ({"provider": "openai", "model": "m", "prompt": ""}, "Prompt is required"),
    ],
)
def test_generate_validation_errors(body, needle):
    r = _client().post("/generate", json=body)
    assert r.status_code == 400
    data = r.json()
    assert data["ok"] is False
    assert needle in data["error"]


def test_malformed_body_is_400():
    r = _client().post("/generate", content=b"not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["ok"] is False


def test_missing_api_key_is_401():
    fake = FakeGenerate()
    r = _client(fake, env={"OPENAI_API_KEY": "sk-test"}).post(
        "/generate", json={"provider": "anthropic", "model": "claude", "prompt": "go"}
    )
    assert r.status_code == 401
    assert r.json() == {"ok": False, "error": "API key for anthropic is not configured"}
    assert fake.calls == []


def test_configuration_error_from_provider_is_401():
    r = _client(FakeGenerate(error=ConfigurationMissing("API key is required for openai"))).post(
        "/generate", json={"provider": "openai", "model": "m", "prompt": "go"}
    )
    assert r.status_code == 401


def test_wrong_method_is_405():
    r = _client().get("/generate")
    assert r.status_code == 405
    assert r.json() == {"ok": False, "error": "Method not allowed"}


def test_upstream_failure_is_500():
    r = _client(FakeGenerate(error=UpstreamFailure("OpenAI API error: 502"))).post(
        "/generate", json={"provider": "openai", "model": "m", "prompt": "go"}
    )
    assert r.status_code == 500
    assert r.json() == {"ok": False, "error": "OpenAI API error: 502"}
