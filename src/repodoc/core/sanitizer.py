"""
Rule-driven cleanup of text returned by the generation provider.

Models sometimes leak their reasoning: tagged thinking blocks, conversational
preambles ("Alright, ...", "Let me ...") or remarks about their own process.
The sanitizer strips those lines so callers only see the answer.
"""

import re
from dataclasses import dataclass, field

DEFAULT_BLOCK_TAGS: tuple[str, ...] = ("think", "thinking", "reasoning", "analysis")

DEFAULT_LINE_PREFIXES: tuple[str, ...] = (
    "alright,",
    "okay,",
    "let me",
    "i need to",
    "i will",
    "i'll",
    "first, i",
    "hmm",
    "so,",
)

DEFAULT_LEAKAGE_PHRASES: tuple[str, ...] = ("as an ai", "thinking process", "my reasoning")


@dataclass
class SanitizerRules:
    """
    Configurable sanitization rules.

    Attributes:
        block_tags: Tag names whose <tag>...</tag> blocks are removed
        line_prefixes: Case-insensitive prefixes that mark a line as filler
        leakage_phrases: Case-insensitive substrings that mark a line as leakage
    """

    block_tags: tuple[str, ...] = DEFAULT_BLOCK_TAGS
    line_prefixes: tuple[str, ...] = DEFAULT_LINE_PREFIXES
    leakage_phrases: tuple[str, ...] = DEFAULT_LEAKAGE_PHRASES

    def extend(
        self,
        block_tags: tuple[str, ...] = (),
        line_prefixes: tuple[str, ...] = (),
        leakage_phrases: tuple[str, ...] = (),
    ) -> "SanitizerRules":
        """Return a copy with extra rules appended."""
        return SanitizerRules(
            block_tags=self.block_tags + block_tags,
            line_prefixes=self.line_prefixes + line_prefixes,
            leakage_phrases=self.leakage_phrases + leakage_phrases,
        )


@dataclass
class ResponseSanitizer:
    """Applies SanitizerRules to provider output."""

    rules: SanitizerRules = field(default_factory=SanitizerRules)

    def __post_init__(self) -> None:
        tags = "|".join(re.escape(tag) for tag in self.rules.block_tags)
        # Closed blocks anywhere, then an unterminated opening block running to the end
        self._closed_block = re.compile(
            rf"<\s*({tags})\b[^>]*>.*?<\s*/\s*\1\s*>", re.IGNORECASE | re.DOTALL
        )
        self._open_block = re.compile(rf"<\s*({tags})\b[^>]*>.*\Z", re.IGNORECASE | re.DOTALL)
        self._stray_tag = re.compile(rf"<\s*/?\s*({tags})\b[^>]*>", re.IGNORECASE)
        self._prefixes = tuple(p.lower() for p in self.rules.line_prefixes)
        self._phrases = tuple(p.lower() for p in self.rules.leakage_phrases)

    def is_filler(self, line: str) -> bool:
        """True if a stripped line is meta-reasoning rather than content."""
        lower = line.lower()
        if lower.startswith(self._prefixes):
            return True
        return any(phrase in lower for phrase in self._phrases)

    def sanitize(self, text: str) -> str:
        """
        Remove reasoning blocks and filler lines, trim and drop empty lines.

        Returns:
            Remaining lines joined with '\\n'
        """
        if not self.rules.block_tags:
            cleaned = text
        else:
            cleaned = self._closed_block.sub("\n", text)
            cleaned = self._open_block.sub("\n", cleaned)
            cleaned = self._stray_tag.sub("", cleaned)

        kept = []
        for line in cleaned.splitlines():
            stripped = line.strip()
            if not stripped or self.is_filler(stripped):
                continue
            kept.append(stripped)
        return "\n".join(kept)


def sanitize_response(text: str, rules: SanitizerRules | None = None) -> str:
    """Sanitize text with the given (or default) rules."""
    return ResponseSanitizer(rules or SanitizerRules()).sanitize(text)
