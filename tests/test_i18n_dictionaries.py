"""i18n dictionary symmetry: ES/EN keys match, placeholders agree and required keys exist."""
from __future__ import annotations

import json
import re
from pathlib import Path

from app.validation import _VALIDATION_EN


def _load_json(path: Path) -> dict:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def _dicts() -> tuple[dict, dict]:
    repo_root = Path(__file__).resolve().parents[1]
    es = _load_json(repo_root / "app" / "i18n" / "es.json")
    en = _load_json(repo_root / "app" / "i18n" / "en.json")
    return es, en


def _placeholders(text: str) -> set[str]:
    return set(re.findall(r"\{(\w+)\}", text))


def test_es_en_keys_symmetric() -> None:
    """ES and EN dictionaries have identical key sets."""
    es, en = _dicts()
    assert set(es.keys()) == set(en.keys()), (
        f"Key mismatch: ES has {set(es.keys()) - set(en.keys())!r} not in EN; "
        f"EN has {set(en.keys()) - set(es.keys())!r} not in ES"
    )


def test_placeholders_match() -> None:
    """A {name} placeholder in ES is also in EN (format(**kwargs) would silently fall back otherwise)."""
    es, en = _dicts()
    mismatched = sorted(k for k in es if k in en and _placeholders(es[k]) != _placeholders(en[k]))
    assert not mismatched, f"Placeholder mismatch: {mismatched}"


def test_required_keys_present() -> None:
    """Required i18n keys exist in both ES and EN."""
    es, en = _dicts()
    required = {
        "app.title",
        "sidebar.language",
        "nav.overview",
        "login.header",
        "status.not_found",
        *_VALIDATION_EN,
    }
    missing_es = required - set(es.keys())
    missing_en = required - set(en.keys())
    assert not missing_es, f"ES missing keys: {missing_es}"
    assert not missing_en, f"EN missing keys: {missing_en}"


def test_validation_defaults_match_en_dictionary() -> None:
    _, en = _dicts()
    for key, text in _VALIDATION_EN.items():
        assert _placeholders(en[key]) == _placeholders(text), key
