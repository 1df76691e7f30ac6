"""Bundled stage prompts, overridable per stage through SYSTEM_PROMPT_<n>."""
from __future__ import annotations

import json
from pathlib import Path
from string import Template
from typing import Any

from analogenie.config import settings


PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"

# path -> (mtime_ns, catalog); an entry is stale once the file's mtime moves.
_catalogs: dict[Path, tuple[int, dict[str, Any]]] = {}


def load_catalog(path: Path | None = None) -> dict[str, Any]:
    path = path or PROMPTS_PATH
    mtime_ns = path.stat().st_mtime_ns
    cached = _catalogs.get(path)
    if cached is not None and cached[0] == mtime_ns:
        return cached[1]

    catalog = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(catalog, dict):
        raise ValueError(f"Prompt catalog must be a JSON object: {path}")
    for stage in (1, 2, 3):
        if not isinstance(catalog.get(f"stage_{stage}"), dict):
            raise ValueError(f"Prompt catalog {path} has no stage_{stage} section")
    _catalogs[path] = (mtime_ns, catalog)
    return catalog


def get_prompt(key: str, *, path: Path | None = None) -> str:
    """Return the raw catalog entry for a dotted key, without substitution."""
    node: Any = load_catalog(path)
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(f"Prompt key not found: {key}")
        node = node[part]
    if not isinstance(node, str):
        raise TypeError(f"Prompt key must map to a string: {key}")
    return node


def render_prompt(key: str, **values: Any) -> str:
    template = Template(get_prompt(key))
    try:
        return template.substitute(**values)
    except KeyError as exc:
        raise KeyError(f"Missing template value '{exc.args[0]}' for prompt '{key}'") from exc


def clear_prompt_cache() -> None:
    _catalogs.clear()


def reload_prompts() -> dict[str, Any]:
    """Drop cached catalogs and load the bundled one again, failing fast on a broken file."""
    clear_prompt_cache()
    return load_catalog()


def system_template(stage: int) -> str:
    """Stage system template: the SYSTEM_PROMPT_<n> override when set, else the catalog default."""
    override = settings.system_prompt_for(stage)
    if override:
        return override
    return get_prompt(f"stage_{stage}.system_prompt")


def user_prompt(stage: int, **values: Any) -> str:
    return render_prompt(f"stage_{stage}.user_prompt", **values)
