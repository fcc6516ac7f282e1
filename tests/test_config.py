import json
import logging

from chainslots.config import PROJECT_ROOT, PathsConfig, SlotsConfig, load_config
from chainslots.core.logger import JsonFormatter, setup_logger


def test_defaults(tmp_path):
    config = load_config(tmp_path / "missing.json")
    assert config.wallet.starting_balance == 1000.0
    assert config.wallet.network == "Ethereum Mainnet"
    assert config.slots.fee_percent == 2.5
    assert config.slots.history_limit == 50
    assert config.slots.reel_delays == [1.0, 1.5, 2.0]
    assert config.slots.settle_delay == 0.3


def test_config_file_and_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"wallet": {"starting_balance": 250}, "slots": {"fee_percent": 5}}))
    monkeypatch.setenv("FEE_PERCENT", "1.5")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = load_config(path)
    assert config.wallet.starting_balance == 250.0
    assert config.slots.fee_percent == 1.5
    assert config.logging.level == "DEBUG"


def test_reveal_delay_scale(tmp_path, monkeypatch):
    monkeypatch.setenv("REVEAL_DELAY_SCALE", "0")
    config = load_config(tmp_path / "missing.json")
    assert config.slots.reel_delays == [0.0, 0.0, 0.0]
    assert config.slots.settle_delay == 0.0


def test_scaled_returns_copy():
    slots = SlotsConfig()
    fast = slots.scaled(0.5)
    assert fast.reel_delays == [0.5, 0.75, 1.0]
    assert slots.reel_delays == [1.0, 1.5, 2.0]


def test_default_config_path_is_project_root():
    paths = PathsConfig()
    assert paths.get_config_path() == PROJECT_ROOT / "config.json"
    assert paths.get_log_path() == PROJECT_ROOT / "data" / "app.log"


def test_load_config_reads_project_config_by_default(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"wallet": {"network": "Sepolia"}}))
    monkeypatch.setattr("chainslots.config.PROJECT_ROOT", tmp_path)

    config = load_config()
    assert config.wallet.network == "Sepolia"


def test_json_formatter_includes_extra_fields():
    logger = setup_logger("chainslots-test-json", formatter="json")
    record = logger.makeRecord(
        logger.name, logging.INFO, __file__, 1, "Spin settled", (), None,
        extra={"bet": "10", "fee": "12.5"},
    )
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "Spin settled"
    assert payload["level"] == "INFO"
    assert payload["bet"] == "10"
    assert payload["fee"] == "12.5"
    assert "msg" not in payload
