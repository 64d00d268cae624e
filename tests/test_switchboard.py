import pytest

from groupchat.errors import InvalidArgument
from groupchat.switchboard import ProviderConfig, ProviderDetails, Switchboard


def test_unconfigured_participant_is_simulated():
    board = Switchboard()
    assert board.get_participant_config("p1") is None
    assert board.get_participant_config_with_default("p1") == ProviderConfig()
    assert not board.has_real_provider_enabled("p1")
    assert board.get_provider_details("p1") is None


def test_enabled_provider_returns_details_with_default_model():
    board = Switchboard()
    board.set_participant_config("p1", ProviderConfig(enabled=True, provider="openai"))
    assert board.get_participant_config("p1").model == "gpt-4o-mini"
    assert board.get_provider_details("p1") == ProviderDetails(provider="openai", model="gpt-4o-mini")


def test_explicit_model_is_kept():
    board = Switchboard()
    board.set_participant_config("p1", ProviderConfig(enabled=True, provider="anthropic", model="claude-x"))
    assert board.get_provider_details("p1") == ProviderDetails(provider="anthropic", model="claude-x")


def test_disabled_or_simulated_means_no_provider():
    board = Switchboard()
    board.set_participant_config("off", ProviderConfig(enabled=False, provider="openai"))
    board.set_participant_config("sim", ProviderConfig(enabled=True, provider="simulated"))
    assert board.get_provider_details("off") is None
    assert board.get_provider_details("sim") is None
    assert board.get_participant_config("sim").model is None


def test_set_many_get_all_and_clear():
    board = Switchboard()
    board.set_many(
        {
            "a": ProviderConfig(enabled=True, provider="openai"),
            "b": ProviderConfig(enabled=True, provider="anthropic"),
        }
    )
    assert set(board.get_all()) == {"a", "b"}
    board.clear()
    assert board.get_all() == {}


def test_unknown_provider_is_rejected():
    with pytest.raises(InvalidArgument):
        Switchboard().set_participant_config("p1", ProviderConfig(enabled=True, provider="mystery"))
