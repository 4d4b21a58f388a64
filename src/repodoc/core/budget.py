"""
Prompt content budgeting.

Candidates are truncated to a per-file byte cap and then packed first-fit, in
the order given, under a cumulative character cap. Anything that does not fit
is recorded as omitted rather than failing the whole assembly.
"""

import codecs
from dataclasses import dataclass, field
from typing import Callable, Iterable

COMPACT_FILE_CAP = 1000
EXTENDED_FILE_CAP = 10240
DEFAULT_OMITTED_PREVIEW = 5


def file_block(path: str, content: str) -> str:
    """Default block format for a file in a prompt."""
    return f"--- {path} ---\n{content}\n\n"


def summary_block(path: str, content: str) -> str:
    """Block format for a per-file summary in the synthesis prompt."""
    return f"## `{path}`\n{content}\n\n"


def truncate_to_bytes(content: bytes | str, cap: int) -> str:
    """
    Truncate content to at most cap UTF-8 bytes and decode it.

    A multi-byte character cut by the cap is dropped rather than replaced, and
    undecodable input bytes are replaced.
    """
    raw = content.encode("utf-8") if isinstance(content, str) else content
    if len(raw) <= cap:
        return raw.decode("utf-8", errors="replace")
    # final=False holds back an incomplete trailing sequence instead of emitting it
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    return decoder.decode(raw[: max(cap, 0)], final=False)


class ContentBudget:
    """Monotonic character counter against a ceiling."""

    def __init__(self, ceiling: int, used: int = 0):
        self._ceiling = ceiling
        self._used = used

    @property
    def used(self) -> int:
        return self._used

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def remaining(self) -> int:
        return max(self._ceiling - self._used, 0)

    def fits(self, size: int) -> bool:
        """True if consuming size more characters stays strictly below the ceiling."""
        return self._used + size < self._ceiling

    def try_consume(self, size: int) -> bool:
        """Consume size characters if they fit; return whether they did."""
        if not self.fits(size):
            return False
        self._used += size
        return True


@dataclass
class BudgetedAssembly:
    """Result of packing candidates under a budget."""

    text: str
    included: list[str] = field(default_factory=list)
    omitted: list[str] = field(default_factory=list)
    used_chars: int = 0


def omission_note(omitted: list[str], preview: int = DEFAULT_OMITTED_PREVIEW) -> str:
    """Human-readable note listing the omitted count and the first few paths."""
    shown = ", ".join(omitted[:preview]) if preview > 0 else ""
    more = " ..." if len(omitted) > preview else ""
    names = f": {shown}{more}" if shown else ""
    return f"\n--- {len(omitted)} file(s) omitted due to size limits{names} ---\n"


def assemble(
    candidates: Iterable[tuple[str, bytes | str]],
    per_file_cap: int,
    cumulative_cap: int,
    preamble: str = "",
    omitted_preview: int = DEFAULT_OMITTED_PREVIEW,
    block_format: Callable[[str, str], str] = file_block,
) -> BudgetedAssembly:
    """
    Pack (path, content) candidates into a prompt body.

    Args:
        candidates: Ordered (path, content) pairs, highest priority first
        per_file_cap: Byte cap applied to each content before formatting
        cumulative_cap: Character ceiling for preamble plus blocks
        preamble: Text placed before the blocks; counts toward the budget
        omitted_preview: How many omitted paths to name in the trailing note
        block_format: Formats one (path, truncated content) block

    Returns:
        BudgetedAssembly whose blocks plus preamble stay below cumulative_cap.
        The omission note, when present, is appended after the budgeted part.
    """
    budget = ContentBudget(cumulative_cap, used=len(preamble))
    parts: list[str] = [preamble] if preamble else []
    result = BudgetedAssembly(text="")

    for path, content in candidates:
        block = block_format(path, truncate_to_bytes(content, per_file_cap))
        if budget.try_consume(len(block)):
            parts.append(block)
            result.included.append(path)
        else:
            result.omitted.append(path)

    if result.omitted:
        parts.append(omission_note(result.omitted, omitted_preview))

    result.text = "".join(parts)
    result.used_chars = budget.used
    return result
