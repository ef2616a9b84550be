"""
Rule-based technology classification over the full file listing and the
declared dependencies.
"""

from fnmatch import fnmatchcase
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from stackscout.catalog import TechnologyRule, load_catalog


def manifest_dependency_names(manifest: Optional[Dict[str, Any]]) -> Set[str]:
    """Names declared under ``dependencies`` and ``devDependencies``."""
    if not manifest:
        return set()
    names = set()
    for section in ("dependencies", "devDependencies"):
        deps = manifest.get(section)
        if isinstance(deps, dict):
            names.update(k for k in deps if isinstance(k, str))
    return names


def file_pattern_matches(pattern: str, path: str) -> bool:
    """
    Check a catalog file pattern against one repository path.

    ``dir/`` matches any path inside a directory of that name, a pattern with
    ``*`` is a glob over the path or its file name, anything else must equal
    the path or its trailing components.
    """
    if pattern.endswith("/"):
        return path.startswith(pattern) or f"/{pattern}" in path
    if "*" in pattern:
        filename = path.rsplit("/", 1)[-1]
        return fnmatchcase(path, pattern) or fnmatchcase(filename, pattern)
    return path == pattern or path.endswith(f"/{pattern}")


def _rule_matches(
    rule: TechnologyRule,
    paths: Sequence[str],
    npm_packages: Set[str],
    python_packages: Set[str],
) -> bool:
    for pattern in rule.file_patterns:
        if any(file_pattern_matches(pattern, p) for p in paths):
            return True
    for package in rule.package_names:
        if package in npm_packages or package.lower() in python_packages:
            return True
    for ext in rule.extensions:
        if any(p.endswith(ext) for p in paths):
            return True
    return False


def classify_by_rules(
    all_paths: Iterable[str],
    manifest: Optional[Dict[str, Any]] = None,
    python_package_names: Optional[Iterable[str]] = None,
    rules: Optional[Sequence[TechnologyRule]] = None,
) -> Set[str]:
    """
    Apply every catalog rule and collect the identifiers that fire.

    Args:
        all_paths: The complete tree listing, not the sample
        manifest: Decoded ``package.json``, if the repository has one
        python_package_names: Lower-cased names from ``requirements.txt``
        rules: Catalog to apply; the loaded default catalog when omitted

    Returns:
        Identifiers of every rule with at least one matching condition
    """
    paths: List[str] = list(all_paths)
    npm_packages = manifest_dependency_names(manifest)
    python_packages = {name.lower() for name in (python_package_names or ())}
    if rules is None:
        rules = load_catalog()

    return {
        rule.identifier
        for rule in rules
        if _rule_matches(rule, paths, npm_packages, python_packages)
    }
