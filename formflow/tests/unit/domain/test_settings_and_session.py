from __future__ import annotations

import pickle

import pytest

from formflow.domain.results import Failure, Redirect, Validation
from formflow.domain.session import EXPIRED, SessionToken
from formflow.domain.settings import AppSettings


def test_settings_from_mapping_coerces_values() -> None:
    settings = AppSettings.from_mapping(
        {"api_base_url": "http://backend.local/ ", "request_timeout_s": "5", "logout_route": "/logout"}
    )

    assert settings.api_base_url == "http://backend.local"
    assert settings.request_timeout_s == 5
    assert settings.logout_route == "logout"
    assert settings.token_ttl_s == 3600


def test_settings_reject_unknown_keys_and_bad_ints() -> None:
    with pytest.raises(ValueError, match="Unsupported settings keys: box_urls"):
        AppSettings.from_mapping({"box_urls": {}})
    with pytest.raises(ValueError):
        AppSettings.from_mapping({"retries": "many"})
    with pytest.raises(ValueError):
        AppSettings.from_mapping({"token_ttl_s": -1})


def test_settings_from_env_reads_prefixed_variables() -> None:
    env = {"FORMFLOW_API_BASE_URL": "http://api", "FORMFLOW_TOKEN_TTL_S": "60", "OTHER": "x"}

    settings = AppSettings.from_env(env)

    assert settings.api_base_url == "http://api"
    assert settings.token_ttl_s == 60
    assert settings.to_dict()["pending_label"] == "Submitting..."


def test_expired_sentinel_is_a_singleton() -> None:
    assert pickle.loads(pickle.dumps(EXPIRED)) is EXPIRED
    assert SessionToken.none().is_expired
    assert SessionToken.none().value is None
    assert repr(EXPIRED) == "EXPIRED"


def test_result_kinds() -> None:
    assert Redirect(target="/").kind == "redirect"
    assert Validation(message="m").is_error
    assert Failure(message="m").is_error
    assert not Redirect(target="/").is_error
