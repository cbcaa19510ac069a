from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from . import console

APP_NAME = "stackboot"
CONFIG_FILENAME = "config.toml"
ENV_CONFIG_PATH = "STACKBOOT_CONFIG"

BOOL_KEYS = ("skip_upgrade", "skip_firewall", "skip_wireguard")
SETTING_KEYS = ("repo_url", "extra_packages", *BOOL_KEYS)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class AppConfig:
    repo_url: str = ""
    extra_packages: list[str] = field(default_factory=list)
    skip_upgrade: bool = False
    skip_firewall: bool = False
    skip_wireguard: bool = False


def config_path() -> str:
    override = os.getenv(ENV_CONFIG_PATH, "").strip()
    if override:
        return override
    return os.path.join(user_config_dir(APP_NAME), CONFIG_FILENAME)


def default_config() -> AppConfig:
    return AppConfig()


def ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "repo_url": cfg.repo_url,
        "extra_packages": list(cfg.extra_packages),
    }
    for key in BOOL_KEYS:
        data[key] = bool(getattr(cfg, key))
    return data


def from_toml(data: dict[str, Any]) -> AppConfig:
    cfg = default_config()
    cfg.repo_url = str(data.get("repo_url") or "").strip()
    packages_raw = data.get("extra_packages") or []
    if isinstance(packages_raw, str):
        packages_raw = packages_raw.split(",")
    if isinstance(packages_raw, list):
        cfg.extra_packages = [str(p).strip() for p in packages_raw if str(p).strip()]
    for key in BOOL_KEYS:
        value = data.get(key)
        if isinstance(value, bool):
            setattr(cfg, key, value)
    return cfg


def load_config() -> AppConfig:
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return default_config()
    except tomllib.TOMLDecodeError as exc:
        console.warn(f"Ignoring unreadable settings file {path}: {exc}")
        return default_config()
    return from_toml(data)


def save_config(cfg: AppConfig) -> str:
    path = config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(to_toml(cfg)).encode("utf-8"))
    os.chmod(path, 0o600)
    return path


def parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"Expected a boolean (true/false), got: {raw}")


def apply_setting(cfg: AppConfig, key: str, raw: str) -> AppConfig:
    k = key.strip().lower().replace("-", "_")
    if k == "repo_url":
        cfg.repo_url = raw.strip()
    elif k == "extra_packages":
        cfg.extra_packages = [p.strip() for p in raw.replace(" ", ",").split(",") if p.strip()]
    elif k in BOOL_KEYS:
        setattr(cfg, k, parse_bool(raw))
    else:
        raise KeyError(key)
    return cfg
