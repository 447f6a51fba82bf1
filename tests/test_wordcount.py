import pytest

from geeklib.wordcount import WordCounts, count, format_counts, parse_wc_options


def test_worked_example():
    result = count(b"hello world\n")
    assert result.lines == 1
    assert result.words == 2
    assert result.nbytes == len(b"hello world\n")


def test_trailing_word_without_separator_not_counted():
    assert count(b"abc").words == 0


@pytest.mark.parametrize(
    "data",
    [b"", b"one\ntwo\r\nthree", b"  spaced\t\tout  \n", b"\n\n\n"],
)
def test_byte_and_line_invariants(data):
    result = count(data)
    assert result.nbytes == len(data)
    assert result.lines == data.count(b"\n") + data.count(b"\r")


def test_empty_input():
    assert count(b"") == WordCounts(0, 0, 0)


def test_format_all_fields():
    counts = WordCounts(lines=3, words=5, nbytes=20)
    assert format_counts(counts, True, True, True) == "3    5    20    \n"


def test_format_selected_fields():
    counts = WordCounts(lines=3, words=5, nbytes=20)
    assert format_counts(counts, False, True, False) == "5    \n"
    assert format_counts(counts, False, False, False) == "\n"


def test_parse_defaults():
    assert parse_wc_options([]) == (True, True, True, None)


def test_parse_single_option():
    assert parse_wc_options(["-l"]) == (True, False, False, None)


def test_parse_combined_options_and_file():
    assert parse_wc_options(["-wc", "notes.txt"]) == (False, True, True, "notes.txt")


def test_parse_stops_at_filename():
    assert parse_wc_options(["notes.txt", "-l"]) == (True, True, True, "notes.txt")


def test_later_option_resets_earlier():
    assert parse_wc_options(["-l", "-c"]) == (False, False, True, None)


def test_parse_invalid_option():
    with pytest.raises(ValueError, match="Invalid argument -x"):
        parse_wc_options(["-x"])