from __future__ import annotations

import json
from pathlib import Path

import pytest

from stakeledger.api.config import api_config_from_ledger
from stakeledger.env import load_dotenv_if_present, reset_dotenv_state
from stakeledger.runtime.ledger_config import (
    default_ledger_config,
    load_ledger_config,
    read_ledger_config_file,
    validate_ledger_config,
    with_overrides,
)

_ENV = [
    "STAKELEDGER_CONFIG_PATH",
    "STAKELEDGER_MODE",
    "STAKELEDGER_DB_PATH",
    "STAKELEDGER_OWNER",
    "STAKELEDGER_UNSTAKE_FEE",
    "STAKELEDGER_ADMIN_TOKEN",
    "STAKELEDGER_FEE_WALLET",
    "STAKELEDGER_API_PORT",
    "STAKELEDGER_API_HOST",
    "STAKELEDGER_LOG_LEVEL",
    "STAKELEDGER_SEED_PATH",
    "STAKELEDGER_CUSTODY_ACCOUNT",
    "STAKELEDGER_ACCOUNT_SESSIONS",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for k in _ENV:
        monkeypatch.delenv(k, raising=False)


def test_defaults_are_production_safe() -> None:
    cfg = load_ledger_config()
    assert cfg == default_ledger_config()
    assert cfg.mode == "prod"
    assert cfg.unstake_fee == 5
    assert cfg.admin_token is None
    assert cfg.in_memory is False


def test_yaml_file_overrides_defaults(tmp_path: Path) -> None:
    p = tmp_path / "ledger.yaml"
    p.write_text(
        "mode: dev\n"
        "db_path: ':memory:'\n"
        "owner: admin\n"
        "unstake_fee: 10\n"
        "fee_wallet: treasury\n",
        encoding="utf-8",
    )
    cfg = read_ledger_config_file(str(p))
    assert cfg.mode == "dev"
    assert cfg.in_memory is True
    assert cfg.owner == "admin"
    assert cfg.unstake_fee == 10
    assert cfg.fee_wallet == "treasury"
    # untouched keys keep defaults
    assert cfg.api_port == 8080


def test_json_file_and_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / "ledger.json"
    p.write_text(json.dumps({"mode": "test", "api_port": 9000, "owner": "admin"}), encoding="utf-8")
    monkeypatch.setenv("STAKELEDGER_CONFIG_PATH", str(p))
    monkeypatch.setenv("STAKELEDGER_API_PORT", "9100")
    monkeypatch.setenv("STAKELEDGER_ADMIN_TOKEN", "s3cret")

    cfg = load_ledger_config()
    assert cfg.mode == "test"
    assert cfg.owner == "admin"
    assert cfg.api_port == 9100
    assert cfg.admin_token == "s3cret"


@pytest.mark.parametrize(
    "changes",
    [
        {"mode": "staging"},
        {"unstake_fee": 1_001},
        {"unstake_fee": -1},
        {"api_port": 0},
        {"owner": " "},
        {"owner": "stakeledger"},
        {"log_level": "LOUD"},
        {"seed_path": "/definitely/not/here.yaml"},
    ],
)
def test_validation_fails_fast(changes) -> None:
    with pytest.raises(ValueError):
        with_overrides(default_ledger_config(), **changes)


def test_non_mapping_file_rejected(tmp_path: Path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_ledger_config_file(str(p))


def test_dotenv_populates_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / ".env"
    p.write_text("STAKELEDGER_OWNER=dotenv-owner\n", encoding="utf-8")
    reset_dotenv_state()
    monkeypatch.setenv("STAKELEDGER_DOTENV_PATH", str(p))
    # Register the key with monkeypatch so the value dotenv writes is undone.
    monkeypatch.setenv("STAKELEDGER_OWNER", "placeholder")
    monkeypatch.delenv("STAKELEDGER_OWNER")

    assert load_dotenv_if_present() is True
    assert load_ledger_config().owner == "dotenv-owner"
    # loads once per process
    assert load_dotenv_if_present() is False
    reset_dotenv_state()


def test_validate_accepts_defaults() -> None:
    validate_ledger_config(default_ledger_config())


def test_account_sessions_from_file_and_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / "ledger.yaml"
    p.write_text("mode: test\naccount_sessions:\n  alice: k1\n", encoding="utf-8")
    assert read_ledger_config_file(str(p)).account_sessions == {"alice": "k1"}

    monkeypatch.setenv("STAKELEDGER_CONFIG_PATH", str(p))
    monkeypatch.setenv("STAKELEDGER_ACCOUNT_SESSIONS", "bob=k2, carol=k3")
    cfg = load_ledger_config()
    assert cfg.account_sessions == {"bob": "k2", "carol": "k3"}
    assert api_config_from_ledger(cfg).account_sessions == {"bob": "k2", "carol": "k3"}

    monkeypatch.setenv("STAKELEDGER_ACCOUNT_SESSIONS", "bob")
    with pytest.raises(ValueError):
        load_ledger_config()
