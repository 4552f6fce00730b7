"""Tests for solflow.config — environment variable loading and validation."""

import pytest

from solflow.config import load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure SolFlow env vars are cleared between tests.

    Each var is registered with setenv first so teardown also removes
    values that load_dotenv writes straight into os.environ.
    """
    for var in [
        "WALLET_PUBLIC_KEY",
        "SOLANA_RPC_URL",
        "HERMES_URL",
        "JUPITER_API_URL",
        "POLL_INTERVAL_SECONDS",
        "PRICE_HISTORY_SIZE",
        "SLIPPAGE_BPS",
        "RISK_TOLERANCE",
        "PAPER_TRADING",
        "LOG_LEVEL",
        "HEALTH_PORT",
    ]:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


def _set_required(monkeypatch):
    """Set the minimum required environment variables."""
    monkeypatch.setenv("WALLET_PUBLIC_KEY", "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU")


class TestLoadConfig:
    def test_loads_required_vars(self, monkeypatch):
        _set_required(monkeypatch)
        cfg = load_config()
        assert cfg.wallet_public_key == "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"

    def test_defaults(self, monkeypatch):
        _set_required(monkeypatch)
        cfg = load_config()
        assert cfg.solana_rpc_url == "https://api.devnet.solana.com"
        assert cfg.hermes_url == "https://hermes.pyth.network"
        assert cfg.jupiter_api_url == "https://quote-api.jup.ag/v6"
        assert cfg.poll_interval_seconds == 2
        assert cfg.price_history_size == 200
        assert cfg.slippage_bps == 50
        assert cfg.risk_tolerance == "balanced"
        assert cfg.paper_trading is True
        assert cfg.log_level == "INFO"
        assert cfg.health_port == 8080

    def test_config_missing_var(self, monkeypatch, tmp_path):
        # Use a non-existent env_path so load_dotenv doesn't re-populate
        # from a real .env file
        with pytest.raises(ValueError, match="WALLET_PUBLIC_KEY"):
            load_config(env_path=str(tmp_path / "nonexistent.env"))

    def test_overrides(self, monkeypatch):
        _set_required(monkeypatch)
        monkeypatch.setenv("POLL_INTERVAL_SECONDS", "5")
        monkeypatch.setenv("SLIPPAGE_BPS", "100")
        monkeypatch.setenv("RISK_TOLERANCE", "aggressive")
        cfg = load_config()
        assert cfg.poll_interval_seconds == 5
        assert cfg.slippage_bps == 100
        assert cfg.risk_tolerance == "aggressive"

    @pytest.mark.parametrize("raw, expected", [
        ("false", False), ("0", False), ("no", False), ("TRUE", True), ("yes", True),
    ])
    def test_paper_trading_flag(self, monkeypatch, raw, expected):
        _set_required(monkeypatch)
        monkeypatch.setenv("PAPER_TRADING", raw)
        assert load_config().paper_trading is expected

    def test_invalid_integer(self, monkeypatch):
        _set_required(monkeypatch)
        monkeypatch.setenv("HEALTH_PORT", "eighty")
        with pytest.raises(ValueError):
            load_config()

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("WALLET_PUBLIC_KEY=FromDotenvFile111\nSLIPPAGE_BPS=75\n")
        cfg = load_config(env_path=str(env_file))
        assert cfg.wallet_public_key == "FromDotenvFile111"
        assert cfg.slippage_bps == 75


class TestNetwork:
    def test_devnet_default(self, monkeypatch):
        _set_required(monkeypatch)
        assert load_config().is_devnet is True

    def test_mainnet(self, monkeypatch):
        _set_required(monkeypatch)
        monkeypatch.setenv("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com")
        assert load_config().is_devnet is False
