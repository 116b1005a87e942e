"""Module selectors: literal-or-pattern name matching for trigger_similar()."""
#
# PURPOSE:
# trigger_similar() can address one group/member by name, or many of them at
# once with a regular expression. A Selector makes that choice explicit so a
# literal name that happens to start with "/" is never mistaken for a pattern.
#
# ACCEPTED INPUTS (Selector.coerce):
# - Selector               -> used as is
# - compiled re.Pattern    -> pattern
# - "/body/flags" string   -> pattern, only when legacy syntax is enabled
# - any other string       -> literal
#
# Pattern matching uses re.search (unanchored), so "/grp_/" matches any name
# containing "grp_" and "/^grp_/" only names starting with it.
#

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

from rendezvous.errors import ErrorCode, RendezvousError

PATTERN_DELIMITER = "/"

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}
# Accepted in delimited patterns but meaningless for whole-name matching
_IGNORED_FLAGS = ("g", "u", "y")

SelectorLike = Union["Selector", re.Pattern[str], str]


@dataclass(frozen=True)
class Selector:
    """
    Selects names either by exact equality or by regular expression.

    Fields:
        value: the literal name, or the pattern source
        regex: compiled pattern, None for literals
    """
    value: str
    regex: Optional[re.Pattern[str]] = None

    @property
    def is_pattern(self) -> bool:
        return self.regex is not None

    @classmethod
    def literal(cls, name: str) -> "Selector":
        return cls(value=str(name))

    @classmethod
    def pattern(cls, source: Union[str, re.Pattern[str]], flags: int = 0) -> "Selector":
        if isinstance(source, re.Pattern):
            return cls(value=source.pattern, regex=source)
        try:
            return cls(value=source, regex=re.compile(source, flags))
        except re.error as e:
            raise RendezvousError(
                ErrorCode.PATTERN_INVALID,
                f"Cannot compile pattern {source!r}: {e}",
                details={"pattern": source},
            ) from e

    @classmethod
    def parse(cls, text: str) -> "Selector":
        """
        Parse the delimited "/body/flags" form, e.g. "/^grp_/" or "/^GRP/i".

        Strings that are not delimited patterns become literals, including
        ones whose trailing "flags" contain letters other than imsx/guy
        (so "/usr/bin" stays a literal).
        """
        if not is_delimited(text):
            return cls.literal(text)

        closing = text.rindex(PATTERN_DELIMITER)
        body, flag_chars = text[1:closing], text[closing + 1:]

        flags = 0
        for char in flag_chars:
            flags |= _FLAG_MAP.get(char, 0)
        return cls.pattern(body, flags)

    @classmethod
    def coerce(cls, value: SelectorLike, legacy: bool = True) -> "Selector":
        if isinstance(value, Selector):
            return value
        if isinstance(value, re.Pattern):
            return cls.pattern(value)
        text = str(value)
        if legacy:
            return cls.parse(text)
        return cls.literal(text)

    def matches(self, name: str) -> bool:
        if self.regex is None:
            return name == self.value
        return self.regex.search(name) is not None

    def select(self, names: Iterable[str]) -> Iterator[str]:
        """Yield the names this selector accepts, in input order."""
        for name in names:
            if self.matches(name):
                yield name


def is_delimited(text: str) -> bool:
    """True for strings shaped like "/body/flags" with a non-empty body."""
    if len(text) < 3 or not text.startswith(PATTERN_DELIMITER):
        return False
    closing = text.rfind(PATTERN_DELIMITER)
    if closing <= 1:
        return False
    return all(c in _FLAG_MAP or c in _IGNORED_FLAGS for c in text[closing + 1:])
