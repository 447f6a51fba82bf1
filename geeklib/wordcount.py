"""Line, word and byte counting in the manner of wc."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

_LINE_ENDS = frozenset(b"\n\r")
_SPACES = frozenset(b" \t")


@dataclass(frozen=True)
class WordCounts:
    """Counts of lines, words and bytes."""

    lines: int = 0
    words: int = 0
    nbytes: int = 0


def parse_wc_options(args: Iterable[str]) -> tuple[bool, bool, bool, Optional[str]]:
    """Parse arguments into (lines, words, bytes, filename).

    All three counts are shown unless an option argument is given; each
    option argument switches them all off and then on per letter l, w, c.
    The first non-option argument names the input file and ends parsing.
    """
    do_lines = do_words = do_bytes = True
    for arg in args:
        if not arg.startswith("-"):
            return do_lines, do_words, do_bytes, arg
        do_lines = do_words = do_bytes = False
        for letter in arg[1:]:
            if letter == "l":
                do_lines = True
            elif letter == "w":
                do_words = True
            elif letter == "c":
                do_bytes = True
            else:
                raise ValueError(f"Invalid argument {arg}")
    return do_lines, do_words, do_bytes, None


def count(data: bytes) -> WordCounts:
    """Count lines, words and bytes of data.

    A word is counted when a space, tab or line end follows a non-space
    character, so a trailing word with nothing after it is not counted.
    """
    lines = words = 0
    in_space = False
    for byte in data:
        if byte in _LINE_ENDS:
            lines += 1
            if not in_space:
                words += 1
        if byte in _SPACES:
            if not in_space:
                words += 1
            in_space = True
        else:
            in_space = False
    return WordCounts(lines=lines, words=words, nbytes=len(data))


def format_counts(counts: WordCounts, lines: bool, words: bool, nbytes: bool) -> str:
    """The selected counts as one output line."""
    fields = (
        (lines, counts.lines),
        (words, counts.words),
        (nbytes, counts.nbytes),
    )
    return "".join(f"{value}    " for wanted, value in fields if wanted) + "\n"