"""Root conftest: pins test settings from .env.test before chat_client.config is imported.

Environment variables outrank a developer's .env in pydantic-settings, so the
values below always win.
"""
from __future__ import annotations

import os
from pathlib import Path


def _read_env_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    if not path.exists():
        return values
    for raw in path.read_text().splitlines():
        name, sep, value = raw.partition("=")
        if sep and not raw.lstrip().startswith("#"):
            values[name.strip()] = value.strip()
    return values


os.environ.update(_read_env_file(Path(__file__).resolve().parent / ".env.test"))
