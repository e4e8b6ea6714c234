from aakit.config import Settings


def test_pimlico_api_key_alias(monkeypatch):
    """Pimlico API key should load from the legacy alias when present."""

    monkeypatch.setenv("PIMLICO_API_KEY", "")
    monkeypatch.setenv("PIMLICO_KEY", "alias-from-legacy")

    settings = Settings()

    assert settings.pimlico_api_key == "alias-from-legacy"


def test_pimlico_api_key_direct_env(monkeypatch):
    """Environment-provided Pimlico API key remains the primary source."""

    monkeypatch.setenv("PIMLICO_API_KEY", "primary-key")
    monkeypatch.setenv("PIMLICO_KEY", "alias-from-legacy")

    settings = Settings()

    assert settings.pimlico_api_key == "primary-key"


def test_defaults(monkeypatch):
    for name in ("CHAIN_ID", "DEFAULT_ENTRY_POINT_VERSION", "RECEIPT_TIMEOUT_SECONDS", "BUNDLER_URL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.chain_id == 1
    assert settings.default_entry_point_version == "v07"
    assert settings.receipt_timeout_seconds == 60
    assert settings.receipt_poll_interval_seconds == 2
    assert settings.bundler_url == ""


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHAIN_ID", "8453")
    monkeypatch.setenv("BUNDLER_URL", "https://bundler.test")
    monkeypatch.setenv("RPC_TIMEOUT_SECONDS", "5.5")

    settings = Settings()

    assert settings.chain_id == 8453
    assert settings.bundler_url == "https://bundler.test"
    assert settings.rpc_timeout_seconds == 5.5
