import json
import os
from types import SimpleNamespace

import httpx
import pytest
from langchain_core.messages import HumanMessage
from openai import APIConnectionError
from pydantic import ValidationError

from src.domain.errors import ConfigurationError, NarrativeGenerationError
from src.infrastructure.config import Settings
from src.infrastructure.entrypoints.fastapi_app import open_fmp_provider
from src.infrastructure.llm.chat_completion_adapter import ChatCompletionAdapter
from src.infrastructure.secrets.secrets_manager_adapter import SecretsManagerAdapter


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def test_settings_defaults():
    settings = Settings.from_env({})

    assert settings.fmp_api_key is None
    assert settings.llm_api_key is None
    assert settings.fetch_timeout_seconds == 10.0
    assert settings.fetch_deadline_seconds == 30.0
    assert settings.langfuse_enabled is False
    assert settings.log_level == "INFO"


def test_settings_read_environment():
    settings = Settings.from_env(
        {
            "FMP_API_KEY": "fmp",
            "GROQ_API_KEY": "groq",
            "FETCH_TIMEOUT_SECONDS": "4.5",
            "LANGFUSE_PUBLIC_KEY": "pk-lf",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.fmp_api_key == "fmp"
    assert settings.llm_api_key == "groq"
    assert settings.fetch_timeout_seconds == 4.5
    assert settings.langfuse_enabled is True
    assert settings.log_level == "DEBUG"


def test_llm_api_key_takes_precedence_over_groq_key():
    settings = Settings.from_env({"LLM_API_KEY": "primary", "GROQ_API_KEY": "legacy"})

    assert settings.require_llm_key() == "primary"


def test_missing_llm_key_raises():
    with pytest.raises(ConfigurationError, match="LLM_API_KEY not configured"):
        Settings.from_env({}).require_llm_key()


def test_bad_number_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        Settings.from_env({"FETCH_DEADLINE_SECONDS": "soon"})


def test_empty_values_fall_back_to_defaults():
    settings = Settings.from_env({"LLM_API_KEY": "", "GROQ_API_KEY": "groq", "FETCH_TIMEOUT_SECONDS": ""})

    assert settings.llm_api_key == "groq"
    assert settings.fetch_timeout_seconds == 10.0


def test_settings_read_process_environment(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "from-env")
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("FETCH_DEADLINE_SECONDS", "12")

    settings = Settings.from_env()

    assert settings.llm_api_key == "from-env"
    assert settings.fetch_deadline_seconds == 12.0


def test_bad_number_in_process_environment_is_a_configuration_error(monkeypatch):
    monkeypatch.setenv("FETCH_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ConfigurationError):
        Settings.from_env()


def test_settings_are_immutable():
    settings = Settings.from_env({})

    with pytest.raises(ValidationError):
        settings.log_level = "DEBUG"


def test_request_timeout_leaves_room_for_retries():
    settings = Settings.from_env({"FETCH_TIMEOUT_SECONDS": "10"})

    assert settings.request_timeout_seconds == 2.5
    assert settings.request_timeout_seconds * 3 < settings.fetch_timeout_seconds


def test_request_timeout_can_be_set_explicitly():
    settings = Settings.from_env({"FMP_REQUEST_TIMEOUT_SECONDS": "4"})

    assert settings.request_timeout_seconds == 4.0


@pytest.mark.asyncio
async def test_fmp_provider_uses_the_per_request_timeout():
    settings = Settings(fmp_api_key="fmp", fetch_timeout_seconds=8.0)

    async with open_fmp_provider(settings) as provider:
        assert provider.request_timeout == 2.0


@pytest.mark.asyncio
async def test_no_fmp_key_means_no_provider():
    async with open_fmp_provider(Settings(fmp_api_key=None)) as provider:
        assert provider is None


# ---------------------------------------------------------------------------
# Secrets Manager
# ---------------------------------------------------------------------------

class FakeSecretsClient:
    def __init__(self, secret_string):
        self.secret_string = secret_string
        self.requested = []

    def get_secret_value(self, SecretId):
        self.requested.append(SecretId)
        return {"SecretString": self.secret_string}


def test_load_into_env_keeps_existing_values(monkeypatch):
    monkeypatch.setenv("FMP_API_KEY", "")
    monkeypatch.setenv("LLM_API_KEY", "already-set")
    monkeypatch.setenv("UNRELATED", "")
    client = FakeSecretsClient(
        json.dumps({"FMP_API_KEY": "from-secret", "LLM_API_KEY": "from-secret", "UNRELATED": "x"})
    )

    loaded = SecretsManagerAdapter(client=client).load_into_env(
        "arn:secret", keys=("FMP_API_KEY", "LLM_API_KEY")
    )

    assert loaded == ["FMP_API_KEY"]
    assert os.environ["FMP_API_KEY"] == "from-secret"
    assert os.environ["LLM_API_KEY"] == "already-set"
    assert os.environ["UNRELATED"] == ""
    assert client.requested == ["arn:secret"]


@pytest.mark.parametrize("secret_string", ["not json", "[1, 2]"])
def test_non_object_secret_is_rejected(secret_string):
    adapter = SecretsManagerAdapter(client=FakeSecretsClient(secret_string))

    with pytest.raises(ConfigurationError):
        adapter.get_secret("arn:secret")


# ---------------------------------------------------------------------------
# Chat completion adapter
# ---------------------------------------------------------------------------

class FakeChatModel:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.invocations = []

    async def ainvoke(self, messages, config=None):
        self.invocations.append((messages, config))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


def test_adapter_requires_api_key():
    with pytest.raises(ConfigurationError):
        ChatCompletionAdapter(api_key="")


@pytest.mark.asyncio
async def test_complete_passes_callbacks_and_metadata():
    chat = FakeChatModel(content='{"ok": true}')
    adapter = ChatCompletionAdapter(api_key="", _chat_model=chat)
    callback = object()

    reply = await adapter.complete(
        [HumanMessage(content="hi")], callbacks=[callback], metadata={"symbol": "AAPL"}
    )

    assert reply == '{"ok": true}'
    _, config = chat.invocations[0]
    assert config == {"callbacks": [callback], "metadata": {"symbol": "AAPL"}}


@pytest.mark.asyncio
async def test_complete_without_tracing_sends_no_config():
    chat = FakeChatModel(content="{}")

    await ChatCompletionAdapter(api_key="k", _chat_model=chat).complete([HumanMessage(content="hi")])

    assert chat.invocations[0][1] is None


@pytest.mark.asyncio
async def test_multi_part_content_is_joined():
    chat = FakeChatModel(content=[{"type": "text", "text": '{"a":'}, {"type": "text", "text": " 1}"}])

    reply = await ChatCompletionAdapter(api_key="k", _chat_model=chat).complete([])

    assert reply == '{"a": 1}'


@pytest.mark.asyncio
async def test_provider_errors_become_narrative_errors():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    chat = FakeChatModel(error=APIConnectionError(request=request))

    with pytest.raises(NarrativeGenerationError):
        await ChatCompletionAdapter(api_key="k", _chat_model=chat).complete([])
