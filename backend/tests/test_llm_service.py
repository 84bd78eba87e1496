from types import SimpleNamespace

import pytest

from vyapar.core.config import settings
from vyapar.core.exceptions import ConfigurationError, ProviderError
from vyapar.models.ai import (
    DescriptionInput, OrderBriefInput, ShopAudioIntroInput, SupportChatInput,
)
from vyapar.services import llm_service


class FakeClient:
    def __init__(self, chat_content="", pcm=b"\x00\x00" * 240):
        self.chat_content = chat_content
        self.pcm = pcm
        self.prompts = []
        self.spoken = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._chat))
        self.audio = SimpleNamespace(speech=SimpleNamespace(create=self._speak))

    def _chat(self, **kwargs):
        self.prompts.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.chat_content))])

    def _speak(self, **kwargs):
        self.spoken.append(kwargs)
        return SimpleNamespace(content=self.pcm)


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr(llm_service, "get_llm_client", lambda: client)
    return client


def test_missing_key_fails_before_any_call():
    with pytest.raises(ConfigurationError):
        llm_service.generate_product_description(DescriptionInput(title="Samosa", category="Food"))


def test_client_is_built_once_key_is_set(monkeypatch):
    monkeypatch.setattr(settings, "LLM_API_KEY", "sk-test")
    assert llm_service.get_llm_client() is llm_service.get_llm_client()


def test_description_uses_json_mode(fake_client):
    fake_client.chat_content = '{"description": "Garam garam samosa 🥟"}'

    result = llm_service.generate_product_description(DescriptionInput(title="Samosa", category="Food"))

    assert result.description == "Garam garam samosa 🥟"
    assert fake_client.prompts[0]["response_format"] == {"type": "json_object"}


def test_fenced_json_is_accepted(fake_client):
    fake_client.chat_content = 'Sure!\n```json\n{"reply": "Profile mein phone add karein.", "suggested_action": "update_profile"}\n```'

    result = llm_service.support_chat(SupportChatInput(query="Order kaise accept karu?"))

    assert result.suggested_action == "update_profile"


@pytest.mark.parametrize("content", ["", "   ", "no json here", '{"wrong": "shape"}'])
def test_unusable_output_raises_provider_error(fake_client, content):
    fake_client.chat_content = content
    with pytest.raises(ProviderError):
        llm_service.generate_product_description(DescriptionInput(title="Samosa", category="Food"))


def test_order_brief_speaks_fixed_script(fake_client):
    data = OrderBriefInput(product_title="Basmati Rice", shop_name="Sharma Store", customer_name="Asha", address="12, MG Road, Jhansi")

    result = llm_service.generate_order_voice_brief(data)

    assert result.media.startswith("data:audio/wav;base64,")
    assert fake_client.spoken[0]["input"] == (
        "Naya order mila hai. Sharma Store se Basmati Rice uthana hai "
        "aur Asha ko 12, MG Road, Jhansi par deliver karna hai. Drive safe!"
    )
    assert fake_client.spoken[0]["response_format"] == "pcm"
    assert fake_client.prompts == []


def test_shop_intro_writes_script_then_speaks_it(fake_client):
    fake_client.chat_content = "Sharma Store mein aapka swagat hai!"
    data = ShopAudioIntroInput(shop_name="Sharma Store", category="Groceries", address="Jhansi")

    result = llm_service.generate_shop_audio_intro(data)

    assert result.media.startswith("data:audio/wav;base64,")
    assert fake_client.spoken[0]["input"] == "Sharma Store mein aapka swagat hai!"


def test_empty_audio_raises(fake_client):
    fake_client.pcm = b""
    data = OrderBriefInput(product_title="Rice", shop_name="Store", customer_name="Asha", address="Jhansi")
    with pytest.raises(ProviderError):
        llm_service.generate_order_voice_brief(data)
