"""
Property-based tests for file sampling.

Sampling is randomized for large repositories, so these tests assert size and
membership properties only, never which paths were picked.
"""

import random

import pytest
from hypothesis import given, strategies as st, settings, HealthCheck

from stackscout.sampler import (
    EXCLUDED_DIRECTORIES,
    SOURCE_DIRECTORIES,
    filter_candidates,
    is_candidate,
    is_likely_source,
    sample_files,
)

segment = st.sampled_from(
    sorted(EXCLUDED_DIRECTORIES | SOURCE_DIRECTORIES | {"docs", "tests", "scripts", "misc"})
)
filename = st.builds(
    lambda stem, ext: f"{stem}{ext}",
    st.text(alphabet="abcdefghij_", min_size=1, max_size=8),
    st.sampled_from([".py", ".ts", ".js", ".md", ".go", "", ".test.ts"]),
)
path = st.builds(
    lambda dirs, name: "/".join(dirs + [name]),
    st.lists(segment, max_size=3),
    filename,
)


class TestSamplingProperties:
    """Size and membership invariants of sample_files."""

    @given(paths=st.lists(path, max_size=300), cap=st.integers(min_value=0, max_value=150), seed=st.integers())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_sample_size_is_min_of_filtered_and_cap(self, paths, cap, seed):
        sampled = sample_files(paths, cap, random.Random(seed))
        assert len(sampled) == min(len(filter_candidates(paths)), cap)

    @given(paths=st.lists(path, max_size=300), cap=st.integers(min_value=0, max_value=150), seed=st.integers())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_sample_is_drawn_from_candidates(self, paths, cap, seed):
        sampled = sample_files(paths, cap, random.Random(seed))
        candidates = filter_candidates(paths)
        remaining = list(candidates)
        for p in sampled:
            assert is_candidate(p)
            # multiset membership: duplicates in the input may each be picked once
            remaining.remove(p)

    @given(paths=st.lists(path, max_size=300), cap=st.integers(min_value=1, max_value=150), seed=st.integers())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_source_files_are_preferred(self, paths, cap, seed):
        candidates = filter_candidates(paths)
        sampled = sample_files(paths, cap, random.Random(seed))
        source_total = sum(1 for p in candidates if is_likely_source(p))
        source_sampled = sum(1 for p in sampled if is_likely_source(p))
        assert source_sampled == min(source_total, len(sampled))


class TestSamplingExamples:
    """Concrete sampling cases."""

    def test_small_repository_is_returned_whole(self):
        paths = ["src/app.ts", "README.md", "node_modules/react/index.js", "Makefile"]
        assert sample_files(paths, 100) == ["src/app.ts", "README.md"]

    def test_excluded_directories_match_whole_segments(self):
        assert not is_candidate("node_modules/react/index.js")
        assert not is_candidate("packages/web/dist/bundle.js")
        assert is_candidate("distance/calc.py")
        assert is_candidate("src/build_utils.py")

    def test_dotfiles_are_candidates(self):
        assert is_candidate(".eslintrc.json")
        assert not is_candidate("LICENSE")

    def test_top_level_source_directory_is_recognized(self):
        assert is_likely_source("src/index.ts")
        assert is_likely_source("packages/web/Components/Button.tsx")
        assert not is_likely_source("docs/index.md")

    def test_seeded_sampling_is_repeatable(self):
        paths = [f"src/file{i}.py" for i in range(500)]
        assert sample_files(paths, 50, random.Random(7)) == sample_files(paths, 50, random.Random(7))

    def test_source_files_fill_sample_first(self):
        paths = [f"src/s{i}.py" for i in range(5)] + [f"docs/d{i}.md" for i in range(50)]
        sampled = sample_files(paths, 10, random.Random(1))
        assert len(sampled) == 10
        assert sampled[:5] == [f"src/s{i}.py" for i in range(5)]

    def test_zero_cap(self):
        assert sample_files(["src/a.py"], 0) == []

    def test_negative_cap_rejected(self):
        with pytest.raises(ValueError):
            sample_files(["src/a.py"], -1)
