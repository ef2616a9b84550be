"""
File sampling for large repositories.

Extension analysis only needs a representative subset of the tree. The
sampler drops dependency, build and cache directories, then caps the
remaining paths, preferring files that live under conventional source
directories.
"""

import random
from typing import Iterable, List, Optional, Tuple

DEFAULT_SAMPLE_SIZE = 100

EXCLUDED_DIRECTORIES = frozenset({
    "node_modules",
    "vendor",
    "dist",
    "build",
    ".git",
    "__pycache__",
    ".next",
    "coverage",
    ".cache",
})

SOURCE_DIRECTORIES = frozenset({
    "src",
    "lib",
    "app",
    "pages",
    "components",
    "api",
    "services",
    "utils",
    "hooks",
    "models",
    "controllers",
})


def _directories(path: str) -> List[str]:
    return [part.lower() for part in path.split("/")[:-1]]


def _has_extension(path: str) -> bool:
    return "." in path.rsplit("/", 1)[-1]


def is_candidate(path: str) -> bool:
    """True when ``path`` has an extension and sits outside excluded directories."""
    if not _has_extension(path):
        return False
    return not any(part in EXCLUDED_DIRECTORIES for part in _directories(path))


def is_likely_source(path: str) -> bool:
    return any(part in SOURCE_DIRECTORIES for part in _directories(path))


def filter_candidates(paths: Iterable[str]) -> List[str]:
    return [p for p in paths if is_candidate(p)]


def _shuffled(items: List[str], rng: random.Random) -> List[str]:
    copy = list(items)
    rng.shuffle(copy)
    return copy


def partition(paths: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split paths into (likely-source, other), preserving order."""
    source, other = [], []
    for path in paths:
        (source if is_likely_source(path) else other).append(path)
    return source, other


def sample_files(paths: Iterable[str], cap: int = DEFAULT_SAMPLE_SIZE, rng: Optional[random.Random] = None) -> List[str]:
    """
    Bound a file listing to at most ``cap`` representative paths.

    Args:
        paths: Repository-relative paths
        cap: Maximum number of paths to return
        rng: Random source; pass a seeded ``random.Random`` for repeatable picks

    Returns:
        All candidate paths when there are at most ``cap`` of them. Otherwise
        exactly ``cap`` paths: a random subset of likely-source files if there
        are enough, else every likely-source file topped up with randomly
        chosen others.
    """
    if cap < 0:
        raise ValueError("cap must be non-negative")

    candidates = filter_candidates(paths)
    if len(candidates) <= cap:
        return candidates

    rng = rng or random.Random()
    source, other = partition(candidates)

    if len(source) >= cap:
        return _shuffled(source, rng)[:cap]

    remaining = cap - len(source)
    return source + _shuffled(other, rng)[:remaining]
