"""Tests for ProviderSelector ordering and fallback at job start."""
import pytest
from projectgen.core.errors import NoProviderConfigured
from projectgen.providers.impl_azure import AzureOpenAIProvider
from projectgen.providers.impl_google import GoogleGeminiProvider
from projectgen.providers.registry import ProviderSelector
from tests.fakes import FakeProvider


def test_select_initial_returns_highest_priority_usable():
    first = FakeProvider(name="azure", configured=True)
    second = FakeProvider(name="google", configured=True)
    selector = ProviderSelector([first, second])

    assert selector.select_initial() is first


def test_select_initial_skips_unconfigured():
    first = FakeProvider(name="azure", configured=False)
    second = FakeProvider(name="google", configured=True)
    selector = ProviderSelector([first, second])

    assert selector.select_initial() is second
    assert selector.active_name() == "google"


def test_select_initial_raises_when_nothing_usable():
    selector = ProviderSelector([FakeProvider(configured=False)])

    with pytest.raises(NoProviderConfigured):
        selector.select_initial()
    assert selector.active_name() == "none"


def test_select_initial_with_no_adapters():
    with pytest.raises(NoProviderConfigured):
        ProviderSelector([]).select_initial()


def test_next_returns_following_usable_adapter():
    a = FakeProvider(name="a")
    b = FakeProvider(name="b", configured=False)
    c = FakeProvider(name="c")
    selector = ProviderSelector([a, b, c])

    assert selector.next(a) is c
    assert selector.next(c) is None


def test_next_with_unknown_adapter():
    selector = ProviderSelector([FakeProvider(name="a")])

    assert selector.next(FakeProvider(name="stranger")) is None


def test_configured_map():
    selector = ProviderSelector([FakeProvider(name="a"), FakeProvider(name="b", configured=False)])

    assert selector.configured_map() == {"a": True, "b": False}


def test_default_follows_priority_setting(monkeypatch):
    from projectgen.core.config import settings
    monkeypatch.setattr(settings, "provider_priority", "google, azure")

    selector = ProviderSelector.default()

    assert [type(a) for a in selector.adapters] == [GoogleGeminiProvider, AzureOpenAIProvider]


def test_default_rejects_unknown_provider(monkeypatch):
    from projectgen.core.config import settings
    monkeypatch.setattr(settings, "provider_priority", "azure,mystery")

    with pytest.raises(ValueError, match="mystery"):
        ProviderSelector.default()


def test_adapters_report_configuration_from_credentials():
    assert AzureOpenAIProvider(api_key="k", endpoint="https://x.openai.azure.com").is_configured()
    assert not AzureOpenAIProvider(api_key="", endpoint="").is_configured()
    assert GoogleGeminiProvider(api_key="k").is_configured()
    assert not GoogleGeminiProvider(api_key="").is_configured()
