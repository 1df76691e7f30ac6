from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest

from analogenie.services import prompt_store
from analogenie.services.prompt_store import get_prompt, render_prompt, system_template, user_prompt


def test_render_prompt_substitutes_template_values():
    prompt = render_prompt("stage_2.user_prompt", concept="trust", domain="Mycology")

    assert prompt == "Please analyze the relationship between trust and Mycology"


def test_render_prompt_raises_for_unknown_key():
    with pytest.raises(KeyError):
        render_prompt("missing.prompt.key")


def test_render_prompt_names_missing_value():
    with pytest.raises(KeyError, match="concept"):
        render_prompt("stage_1.user_prompt")


def test_get_prompt_rejects_non_string_entries():
    with pytest.raises(TypeError):
        get_prompt("stage_1")


@pytest.mark.parametrize(
    ("stage", "markers"),
    [
        (1, ["[CONCEPT]", "# Top Domains", "Which domain should we explore further?"]),
        (2, ["{{CONCEPT}}", "{{DOMAIN}}", "# 6: Brightest Bulbs", "Which path should we explore further?"]),
        (3, ["{{FINDINGS}}", "<research_questions>", "Top Two Most Promising Research Questions:"]),
    ],
)
def test_catalog_templates_ask_for_extractable_structure(stage, markers):
    with patch("analogenie.services.prompt_store.settings") as mock_settings:
        mock_settings.system_prompt_for.return_value = ""
        template = system_template(stage)

    for marker in markers:
        assert marker in template


def test_environment_template_overrides_catalog():
    with patch("analogenie.services.prompt_store.settings") as mock_settings:
        mock_settings.system_prompt_for.return_value = "Custom [CONCEPT] prompt"

        assert system_template(1) == "Custom [CONCEPT] prompt"


def test_user_prompt_quotes_concept():
    assert user_prompt(1, concept="urban heat") == 'Please analyze the concept: "urban heat"'


def _write_catalog(path, user_prompt_text: str) -> None:
    catalog = {
        f"stage_{stage}": {"system_prompt": f"system {stage}", "user_prompt": user_prompt_text}
        for stage in (1, 2, 3)
    }
    path.write_text(json.dumps(catalog), encoding="utf-8")


@pytest.fixture
def tmp_catalog(tmp_path, monkeypatch):
    path = tmp_path / "prompts.json"
    _write_catalog(path, "first version")
    monkeypatch.setattr(prompt_store, "PROMPTS_PATH", path)
    prompt_store.clear_prompt_cache()
    yield path
    prompt_store.clear_prompt_cache()


def test_catalog_is_cached_until_file_changes(tmp_catalog):
    first = prompt_store.load_catalog()

    assert prompt_store.load_catalog() is first
    assert get_prompt("stage_1.user_prompt") == "first version"


def test_catalog_reloads_when_mtime_changes(tmp_catalog):
    assert get_prompt("stage_1.user_prompt") == "first version"

    previous_ns = tmp_catalog.stat().st_mtime_ns
    _write_catalog(tmp_catalog, "second version")
    os.utime(tmp_catalog, ns=(previous_ns + 1_000_000_000, previous_ns + 1_000_000_000))

    assert get_prompt("stage_1.user_prompt") == "second version"


def test_clear_prompt_cache_forces_a_fresh_read(tmp_catalog):
    first = prompt_store.load_catalog()

    prompt_store.clear_prompt_cache()

    assert prompt_store.load_catalog() is not first


def test_catalog_without_stage_section_is_rejected(tmp_catalog):
    tmp_catalog.write_text(json.dumps({"stage_1": {}, "stage_2": {}}), encoding="utf-8")
    prompt_store.clear_prompt_cache()

    with pytest.raises(ValueError, match="stage_3"):
        prompt_store.load_catalog()


def test_reload_prompts_returns_bundled_catalog():
    catalog = prompt_store.reload_prompts()

    assert set(catalog) >= {"stage_1", "stage_2", "stage_3"}
