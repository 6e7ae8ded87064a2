from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from apigate_client.config_types import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_MS

from . import console

APP_NAME = "apigate"
CONFIG_FILENAME = "config.toml"
ENV_BASE_URL = "APIGATE_BASE_URL"
ENV_TIMEOUT_MS = "APIGATE_TIMEOUT_MS"

_WARNED_BASE_URL_SCHEME = False


def _default_headers() -> dict[str, str]:
    return {"Content-Type": "application/json"}


@dataclass
class AuthConfig:
    token: str = ""
    token_type: str = "bearer"


@dataclass
class AppConfig:
    base_url: str
    auth: AuthConfig
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    headers: dict[str, str] = field(default_factory=_default_headers)


def config_path() -> str:
    return f"{user_config_dir(APP_NAME)}/{CONFIG_FILENAME}"


def default_config() -> AppConfig:
    return AppConfig(
        base_url=DEFAULT_BASE_URL,
        auth=AuthConfig(token="", token_type="bearer"),
        timeout_ms=DEFAULT_TIMEOUT_MS,
        headers=_default_headers(),
    )


def normalize_base_url(raw: str | None, *, warn: bool = False) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    value = value.rstrip("/")
    lowered = value.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return value

    host = value.split("/", 1)[0]
    host = host.split(":", 1)[0].lower()
    if host in {"localhost", "127.0.0.1", "0.0.0.0"}:
        scheme = "http://"
    else:
        scheme = "https://"

    normalized = f"{scheme}{value}"
    if warn:
        _warn_missing_scheme(normalized)
    return normalized


def _warn_missing_scheme(normalized: str) -> None:
    global _WARNED_BASE_URL_SCHEME
    if _WARNED_BASE_URL_SCHEME:
        return
    if not _is_interactive():
        return
    console.warn(f"base_url missing scheme, assuming {normalized}")
    _WARNED_BASE_URL_SCHEME = True


def _is_interactive() -> bool:
    import sys
    return bool(sys.stderr.isatty() or sys.stdout.isatty())


def parse_timeout_ms(raw: Any) -> int | None:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    return {
        "base_url": cfg.base_url,
        "timeout_ms": cfg.timeout_ms,
        "headers": dict(cfg.headers),
        "auth": {
            "token": cfg.auth.token,
            "token_type": cfg.auth.token_type,
        },
    }


def _parse_headers(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        return _default_headers()
    return {str(k): str(v) for k, v in raw.items() if v is not None}


def from_toml(data: dict[str, Any]) -> AppConfig:
    cfg = default_config()
    base_url = normalize_base_url(str(data.get("base_url") or ""), warn=True)
    if base_url:
        cfg.base_url = base_url
    timeout_ms = parse_timeout_ms(data.get("timeout_ms"))
    if timeout_ms is not None:
        cfg.timeout_ms = timeout_ms
    if "headers" in data:
        cfg.headers = _parse_headers(data.get("headers"))
    auth_raw = data.get("auth") or {}
    if isinstance(auth_raw, dict):
        cfg.auth = AuthConfig(
            token=str(auth_raw.get("token") or ""),
            token_type=str(auth_raw.get("token_type") or "bearer"),
        )
    return cfg


def _read_toml() -> dict[str, Any] | None:
    try:
        with open(config_path(), "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        return None


def load_config() -> AppConfig:
    data = _read_toml()
    if data is None:
        return default_config()
    return from_toml(data)


def apply_profile(cfg: AppConfig, profile: str | None, *, warn: bool = True) -> AppConfig:
    if not profile:
        return cfg
    data = _read_toml()
    if data is None:
        return cfg

    profiles_raw = data.get("profiles") or {}
    if not isinstance(profiles_raw, dict):
        return cfg
    prof = profiles_raw.get(profile)
    if not isinstance(prof, dict):
        if warn:
            console.warn(f"Unknown profile: {profile}")
        return cfg

    base_url = normalize_base_url(str(prof.get("base_url") or cfg.base_url), warn=True)
    auth_raw = prof.get("auth") if isinstance(prof.get("auth"), dict) else {}
    token = str(prof.get("token") or auth_raw.get("token") or cfg.auth.token)
    token_type = str(prof.get("token_type") or auth_raw.get("token_type") or cfg.auth.token_type)
    timeout_ms = parse_timeout_ms(prof.get("timeout_ms")) or cfg.timeout_ms
    headers = dict(cfg.headers)
    if isinstance(prof.get("headers"), dict):
        headers.update(_parse_headers(prof["headers"]))
    return AppConfig(
        base_url=base_url or cfg.base_url,
        auth=AuthConfig(token=token, token_type=token_type),
        timeout_ms=timeout_ms,
        headers=headers,
    )


def apply_env(cfg: AppConfig) -> AppConfig:
    base_url = os.getenv(ENV_BASE_URL, "").strip()
    if base_url:
        cfg.base_url = normalize_base_url(base_url)
    timeout_ms = parse_timeout_ms(os.getenv(ENV_TIMEOUT_MS, "").strip())
    if timeout_ms is not None:
        cfg.timeout_ms = timeout_ms
    return cfg


def save_config(cfg: AppConfig) -> str:
    path = config_path()
    ensure_parent_dir(path)
    # profiles are hand-edited; keep them across saves
    existing = _read_toml() or {}
    payload = to_toml(cfg)
    if isinstance(existing.get("profiles"), dict):
        payload["profiles"] = existing["profiles"]
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(payload).encode("utf-8"))
    os.chmod(path, 0o600)
    return path
