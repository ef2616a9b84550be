"""
Technology rule catalog.

Rules live in ``data/technology_rules.yaml`` next to this module and are
loaded once per path. ``STACKSCOUT_RULES_PATH`` points the service at a
different catalog.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "data" / "technology_rules.yaml"


@dataclass(frozen=True)
class TechnologyRule:
    """How to recognize one technology in a repository."""
    identifier: str
    file_patterns: Tuple[str, ...] = ()
    package_names: Tuple[str, ...] = ()
    extensions: Tuple[str, ...] = ()


class CatalogError(ValueError):
    """The rule catalog file is missing or malformed."""


def _string_tuple(entry: Dict[str, Any], key: str, identifier: str) -> Tuple[str, ...]:
    values = entry.get(key) or []
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise CatalogError(f"Rule {identifier!r}: {key} must be a list of strings")
    return tuple(values)


def parse_rules(data: Any) -> Tuple[TechnologyRule, ...]:
    """
    Build rules from the decoded YAML document.

    Args:
        data: A list of mappings with an ``id`` and optional ``files``,
            ``packages`` and ``extensions`` lists

    Returns:
        Rules in catalog order

    Raises:
        CatalogError: If the document does not have the expected shape
    """
    if not isinstance(data, list):
        raise CatalogError("Rule catalog must be a list of rules")

    rules = []
    seen = set()
    for entry in data:
        if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
            raise CatalogError(f"Malformed rule entry: {entry!r}")
        identifier = entry["id"]
        if identifier in seen:
            logger.warning(f"Duplicate rule {identifier!r} in catalog; both entries are kept")
        seen.add(identifier)
        rules.append(TechnologyRule(
            identifier=identifier,
            file_patterns=_string_tuple(entry, "files", identifier),
            package_names=_string_tuple(entry, "packages", identifier),
            extensions=_string_tuple(entry, "extensions", identifier),
        ))
    return tuple(rules)


@lru_cache(maxsize=4)
def _load(path: str) -> Tuple[TechnologyRule, ...]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise CatalogError(f"Cannot read rule catalog {path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in rule catalog {path}: {e}") from e

    rules = parse_rules(data)
    logger.info(f"Loaded {len(rules)} technology rules from {path}")
    return rules


def load_catalog(path: Optional[str] = None) -> Tuple[TechnologyRule, ...]:
    """Load (and cache) the rule catalog at ``path``, or the bundled one."""
    return _load(str(path or DEFAULT_RULES_PATH))
