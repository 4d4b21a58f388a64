"""
Property-based tests for key file selection.

*For any* flattened tree and count, the selection is bounded, ordered by
descending score and stable among equal scores.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from repodoc.core.selection import score_path, select_key_files

segment_strategy = st.one_of(
    st.sampled_from(["main.rs", "index.ts", "config.toml", "README.md", "app.py", "lib", "src"]),
    st.text(alphabet="abcxyz._", min_size=1, max_size=8),
)
path_strategy = st.lists(segment_strategy, min_size=1, max_size=5).map("/".join)
flat_strategy = st.lists(st.tuples(path_strategy, st.booleans()), max_size=40)
count_strategy = st.integers(min_value=-2, max_value=12)


@given(flat=flat_strategy, max_count=count_strategy)
@settings(max_examples=200, deadline=None)
def test_selection_bounded_and_ordered(flat: list[tuple[str, bool]], max_count: int):
    """
    *For any* flat list, the result has at most max_count files, scores are
    non-increasing, and scores recompute from score_path.
    """
    selected = select_key_files(flat, max_count)

    assert len(selected) <= max(max_count, 0)
    files = [path for path, is_dir in flat if not is_dir]
    assert all(path in files for path in selected)
    scores = [score_path(path) for path in selected]
    assert scores == sorted(scores, reverse=True)


@given(flat=flat_strategy, max_count=count_strategy)
@settings(max_examples=200, deadline=None)
def test_selection_stable_for_ties(flat: list[tuple[str, bool]], max_count: int):
    """
    *For any* flat list, files with equal scores keep their input order and
    no unselected file outranks a selected one.
    """
    selected = select_key_files(flat, max_count)
    files = [path for path, is_dir in flat if not is_dir]

    # Expected result from a positional stable ranking
    ranked = sorted(range(len(files)), key=lambda i: -score_path(files[i]))
    expected = [files[i] for i in ranked[: max(max_count, 0)]]
    assert selected == expected


@given(flat=flat_strategy)
@settings(max_examples=100, deadline=None)
def test_directories_never_selected(flat: list[tuple[str, bool]]):
    """*For any* flat list, only file entries can be selected."""
    dirs_only = [(path, True) for path, _ in flat]
    assert select_key_files(dirs_only, 10) == []
