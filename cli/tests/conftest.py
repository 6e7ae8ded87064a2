from __future__ import annotations

import pytest

from apigate_cli import config


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    def _config_dir(_: str) -> str:
        return str(tmp_path)

    monkeypatch.setattr(config, "user_config_dir", _config_dir)
    monkeypatch.delenv(config.ENV_BASE_URL, raising=False)
    monkeypatch.delenv(config.ENV_TIMEOUT_MS, raising=False)
    return tmp_path
