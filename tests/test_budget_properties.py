"""
Property-based tests for content budgeting.

*For any* candidates and caps, the budgeted text stays below the cumulative
cap and every excluded file is reported as omitted.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from repodoc.core.budget import assemble, omission_note, truncate_to_bytes

content_strategy = st.text(max_size=300)
candidates_strategy = st.lists(
    st.tuples(st.text(alphabet="abc/._", min_size=1, max_size=12), content_strategy),
    max_size=20,
)


@given(text=st.text(max_size=200), cap=st.integers(min_value=0, max_value=300))
@settings(max_examples=300, deadline=None)
def test_truncate_respects_byte_cap(text: str, cap: int):
    """
    *For any* text and cap, the result is a prefix of the text whose UTF-8
    encoding fits in cap bytes, and nothing is cut when the text already fits.
    """
    result = truncate_to_bytes(text, cap)

    assert len(result.encode("utf-8")) <= cap
    assert text.startswith(result)
    if len(text.encode("utf-8")) <= cap:
        assert result == text
    else:
        # Only a partial trailing character may be dropped beyond the cap
        assert cap - len(result.encode("utf-8")) < 4


@given(
    candidates=candidates_strategy,
    per_file_cap=st.integers(min_value=0, max_value=200),
    cumulative_cap=st.integers(min_value=1, max_value=2000),
    preamble=st.text(max_size=50),
)
@settings(max_examples=200, deadline=None)
def test_assembly_stays_below_cap(candidates, per_file_cap, cumulative_cap, preamble):
    """
    *For any* candidates, the preamble plus included blocks stay strictly
    below the cumulative cap whenever the preamble alone does.
    """
    result = assemble(candidates, per_file_cap, cumulative_cap, preamble=preamble)

    if len(preamble) < cumulative_cap:
        assert result.used_chars < cumulative_cap
    budgeted = result.text
    if result.omitted:
        note = omission_note(result.omitted)
        assert budgeted.endswith(note)
        budgeted = budgeted[: -len(note)]
    assert len(budgeted) == result.used_chars


@given(
    candidates=candidates_strategy,
    per_file_cap=st.integers(min_value=0, max_value=200),
    cumulative_cap=st.integers(min_value=1, max_value=2000),
)
@settings(max_examples=200, deadline=None)
def test_every_candidate_included_or_omitted(candidates, per_file_cap, cumulative_cap):
    """
    *For any* candidates, each one lands in exactly one of included or
    omitted, and both lists keep candidate order.
    """
    result = assemble(candidates, per_file_cap, cumulative_cap)

    paths = [path for path, _ in candidates]
    assert len(result.included) + len(result.omitted) == len(paths)
    merged = iter(paths)
    for path in result.included:
        assert path in merged
    merged = iter(paths)
    for path in result.omitted:
        assert path in merged
