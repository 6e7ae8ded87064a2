from apigate_cli import config


def test_load_config_defaults_when_file_missing(config_dir) -> None:
    cfg = config.load_config()
    assert cfg.base_url == "http://localhost:3000"
    assert cfg.timeout_ms == 10000
    assert cfg.headers == {"Content-Type": "application/json"}
    assert cfg.auth.token == ""


def test_save_and_load_config(config_dir) -> None:
    cfg = config.default_config()
    cfg.base_url = "https://api.example.com"
    cfg.timeout_ms = 2500
    cfg.headers["X-Team"] = "core"
    cfg.auth.token = "secret"

    path = config.save_config(cfg)
    loaded = config.load_config()

    assert path.endswith("config.toml")
    assert loaded.base_url == "https://api.example.com"
    assert loaded.timeout_ms == 2500
    assert loaded.headers["X-Team"] == "core"
    assert loaded.auth.token == "secret"


def test_save_config_keeps_profiles(config_dir) -> None:
    config_dir.joinpath("config.toml").write_text(
        '\n'.join(
            [
                'base_url = "http://localhost:3000"',
                "",
                "[profiles.staging]",
                'base_url = "https://staging.example.com"',
                "",
            ]
        ),
        encoding="utf-8",
    )

    cfg = config.load_config()
    cfg.auth.token = "t"
    config.save_config(cfg)

    contents = config_dir.joinpath("config.toml").read_text(encoding="utf-8")
    assert "[profiles.staging]" in contents
    assert 'token = "t"' in contents


def test_invalid_timeout_falls_back_to_default(config_dir) -> None:
    config_dir.joinpath("config.toml").write_text('timeout_ms = "soon"\n', encoding="utf-8")
    assert config.load_config().timeout_ms == 10000


def test_apply_env_overrides(config_dir, monkeypatch) -> None:
    monkeypatch.setenv(config.ENV_BASE_URL, "api.example.com/")
    monkeypatch.setenv(config.ENV_TIMEOUT_MS, "750")
    cfg = config.apply_env(config.default_config())
    assert cfg.base_url == "https://api.example.com"
    assert cfg.timeout_ms == 750


def test_apply_profile_unknown_keeps_config(config_dir) -> None:
    cfg = config.default_config()
    assert config.apply_profile(cfg, "missing") is cfg


def test_normalize_base_url_defaults_to_https() -> None:
    assert config.normalize_base_url("example.com") == "https://example.com"


def test_normalize_base_url_defaults_to_http_for_localhost() -> None:
    assert config.normalize_base_url("localhost:3000") == "http://localhost:3000"


def test_normalize_base_url_strips_trailing_slash() -> None:
    assert config.normalize_base_url("https://example.com/") == "https://example.com"
