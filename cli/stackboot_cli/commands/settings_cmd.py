from __future__ import annotations

import typer

from .. import console
from ..config import SETTING_KEYS, apply_setting, config_path, load_config, save_config, to_toml

app = typer.Typer(help="Manage stored defaults (repo URL, extra packages, skipped steps).")


@app.command("path")
def settings_path():
    console.console.print(config_path(), highlight=False)


@app.command("show")
def show_settings():
    data = to_toml(load_config())
    for key in SETTING_KEYS:
        value = data.get(key)
        if isinstance(value, list):
            value = ",".join(value)
        elif isinstance(value, bool):
            value = str(value).lower()
        console.console.print(f"{key}={value}", highlight=False)


@app.command("set")
def set_setting(
        key: str = typer.Argument(..., help=f"Setting key ({', '.join(SETTING_KEYS)})."),
        value: str = typer.Argument(..., help="New value. Lists are comma separated."),
):
    cfg = load_config()
    try:
        apply_setting(cfg, key, value)
    except KeyError:
        console.err(f"Unknown setting: {key}")
        raise typer.Exit(code=2)
    except ValueError as exc:
        console.err(str(exc))
        raise typer.Exit(code=2)
    saved = save_config(cfg)
    console.ok(f"Settings updated: {saved}")
