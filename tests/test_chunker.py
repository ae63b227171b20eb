import math

import pytest

from lawton.ingest.chunking import chunk_text, split_sections


def test_short_text_without_markers_is_a_single_chunk():
    chunks = chunk_text("short text")

    assert len(chunks) == 1
    assert chunks[0].text == "short text"
    assert chunks[0].order_in_doc == 0
    assert chunks[0].section == "auto"


def test_long_text_is_sliced_into_fixed_windows():
    text = "a" * 2500

    chunks = chunk_text(text, max_size=1000)

    assert [len(chunk.text) for chunk in chunks] == [1000, 1000, 500]
    assert [chunk.order_in_doc for chunk in chunks] == [0, 1, 2]
    assert "".join(chunk.text for chunk in chunks) == text


@pytest.mark.parametrize("length", [1, 999, 1000, 1001, 2000, 3456])
def test_chunk_count_matches_ceiling_of_length(length):
    chunks = chunk_text("x" * length)

    assert len(chunks) == math.ceil(length / 1000)
    assert all(len(chunk.text) <= 1000 for chunk in chunks)
    assert [chunk.order_in_doc for chunk in chunks] == list(range(len(chunks)))


def test_section_markers_start_new_segments():
    text = "Intro line\nRule: use the past tense\nExamples: I went home.\nDrill one"

    chunks = chunk_text(text)

    assert [chunk.text for chunk in chunks] == [
        "Intro line",
        "Rule: use the past tense",
        "Examples: I went home.",
        "Drill one",
    ]
    assert all(chunk.section == "auto" for chunk in chunks)


def test_markers_are_case_insensitive():
    assert split_sections("warm up\nASSESSMENT part\ndialogue: A and B") == [
        "warm up",
        "ASSESSMENT part",
        "dialogue: A and B",
    ]


def test_marker_inside_a_line_is_not_a_boundary():
    text = "Remember the Rule about articles.\nAnd the Audio track."

    assert len(chunk_text(text)) == 1


def test_order_is_global_across_segments():
    text = "p" * 1500 + "\nExercise " + "q" * 1200 + "\nAudio script"

    chunks = chunk_text(text)

    orders = [chunk.order_in_doc for chunk in chunks]
    assert orders == list(range(len(chunks)))
    assert [len(chunk.text) for chunk in chunks] == [1000, 500, 1000, 209, 12]


def test_whitespace_is_preserved():
    text = "  padded  \n\n  text  "

    chunks = chunk_text(text)

    assert chunks[0].text == text


def test_leading_boundary_does_not_emit_empty_chunk():
    chunks = chunk_text("\nRule first")

    assert [chunk.text for chunk in chunks] == ["Rule first"]
    assert chunks[0].order_in_doc == 0


def test_empty_text_falls_back_to_single_chunk():
    chunks = chunk_text("")

    assert len(chunks) == 1
    assert chunks[0].text == ""
    assert chunks[0].order_in_doc == 0


def test_chunking_is_deterministic():
    text = "Rule one\nExamples two\n" + "z" * 2100

    assert chunk_text(text) == chunk_text(text)


def test_rejects_non_positive_max_size():
    with pytest.raises(ValueError):
        chunk_text("anything", max_size=0)
