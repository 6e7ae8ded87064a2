from __future__ import annotations

from dataclasses import dataclass

from .config import AppConfig, apply_profile, load_config


class ConfigTokenStore:
    """Reads the bearer token from the config file on every request."""

    def __init__(self, profile: str | None = None):
        self._profile = profile

    def get_token(self) -> str | None:
        cfg = apply_profile(load_config(), self._profile, warn=False)
        return _token_of(cfg)


def _token_of(cfg: AppConfig) -> str | None:
    if (cfg.auth.token_type or "bearer").lower() != "bearer":
        return None
    return (cfg.auth.token or "").strip() or None


@dataclass
class AuthContext:
    state: str
    base_url: str


def resolve_auth_context(profile: str | None = None) -> AuthContext:
    cfg = apply_profile(load_config(), profile)
    state = "token_present" if _token_of(cfg) else "no_token"
    return AuthContext(state=state, base_url=cfg.base_url)
