"""
Cost Code Normalizer.

Canonicalizes free-text cost codes against the configured allow-list.
Normalization never rejects anything: unknown codes come back trimmed so
the validator can still flag them.

Configuration is loaded from budget_engine_config.yaml via budget_engine.config.
"""
import re
from typing import Dict, List, Optional

from rapidfuzz import fuzz, process

from ..config import BudgetEngineConfig, get_config


_WHITESPACE = re.compile(r"\s+")


def _match_key(text: str) -> str:
    """Case- and whitespace-insensitive lookup key."""
    return _WHITESPACE.sub(" ", text.strip()).lower()


def _build_lookup(config: BudgetEngineConfig) -> Dict[str, str]:
    """Map every name and alias key to its canonical name."""
    lookup = {}
    for code in config.cost_codes:
        name = code.get("name")
        if not name:
            continue
        lookup[_match_key(name)] = name
        for alias in code.get("aliases", []):
            lookup.setdefault(_match_key(alias), name)
    return lookup


def valid_cost_codes(config: Optional[BudgetEngineConfig] = None) -> List[str]:
    """Canonical cost code names, in configured order."""
    return (config or get_config()).get_cost_code_names()


def normalize_cost_code(raw: Optional[str], config: Optional[BudgetEngineConfig] = None) -> str:
    """
    Canonicalize a cost code.

        "concrete"            → "Concrete"
        "  TRAFFIC   CONTROL" → "Traffic Control"
        "LANDSCAPE"           → "Landscaping"   (alias)
        " Paving "            → "Paving"        (unknown, trimmed)
    """
    if raw is None:
        return ""
    text = str(raw).strip()
    if not text:
        return ""
    lookup = _build_lookup(config or get_config())
    return lookup.get(_match_key(text), text)


def is_valid_cost_code(raw: Optional[str], config: Optional[BudgetEngineConfig] = None) -> bool:
    """Whether a cost code matches the allow-list after normalization."""
    if raw is None or not str(raw).strip():
        return False
    lookup = _build_lookup(config or get_config())
    return _match_key(str(raw)) in lookup


def suggest_cost_code(raw: Optional[str], config: Optional[BudgetEngineConfig] = None) -> Optional[str]:
    """
    Closest canonical cost code for a misspelled value.

    Returns None when nothing scores above the configured threshold.
    """
    if raw is None or not str(raw).strip():
        return None
    config = config or get_config()
    names = config.get_cost_code_names()
    if not names:
        return None

    result = process.extractOne(
        _match_key(str(raw)),
        {name: _match_key(name) for name in names},
        scorer=fuzz.ratio,
    )
    if result and result[1] >= config.cost_code_suggestion_threshold:
        # dict choices return (choice, score, key)
        return result[2]
    return None
