from __future__ import annotations

from apigate_client import HttpClient
from apigate_client.config_types import ClientConfig

from . import __version__
from .auth_state import ConfigTokenStore
from .config import AppConfig, apply_env, apply_profile, normalize_base_url


def make_client(
    cfg: AppConfig,
    *,
    profile: str | None,
    base_url_override: str | None,
) -> HttpClient:
    effective_cfg = apply_env(apply_profile(cfg, profile))
    base_url = normalize_base_url(base_url_override or effective_cfg.base_url, warn=True)

    return HttpClient(
        ClientConfig(
            base_url=base_url,
            timeout_ms=effective_cfg.timeout_ms,
            default_headers=effective_cfg.headers,
            client_version=__version__,
        ),
        credentials=ConfigTokenStore(profile),
    )
