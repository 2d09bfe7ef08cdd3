import pandas as pd
import pytest

from vocabrecall.exceptions import ExtractionError
from vocabrecall.extraction import HeaderLayout, TabularExtractor, extract_vocabulary
from vocabrecall.models import ItemStatus


def test_primary_header_with_enumerated_word():
    items = extract_vocabulary([
        ["Word", "Synonyms"],
        ["1. Happy (adj.)", "joyful, glad"],
    ])

    assert len(items) == 1
    item = items[0]
    assert item.word == "Happy"
    assert item.synonyms == ["joyful", "glad"]
    assert item.status == ItemStatus.HIDDEN
    assert item.user_guesses == []
    assert item.examples is None


def test_primary_header_columns_anywhere_in_row():
    rows = [
        ["Vocabulary list for week 3"],
        [],
        ["1", "Word", "Definition", "Synonyms"],
        ["1", "Ameliorate", "make better", "improve; better"],
    ]
    extractor = TabularExtractor()

    layout = extractor.detect_header(extractor._rows(rows))
    assert layout == HeaderLayout(row=2, word_col=1, synonyms_col=3, definition_col=2)

    items = extractor.extract(rows)
    assert [(i.word, i.synonyms) for i in items] == [("Ameliorate", ["improve", "better"])]
    assert items[0].definition is None


def test_header_titles_match_case_insensitively_and_in_indonesian():
    items = extract_vocabulary([
        ["  KATA ", "Sinonim"],
        ["Senang", "gembira"],
    ])
    assert [i.word for i in items] == ["Senang"]


def test_header_title_must_match_exactly():
    items = extract_vocabulary([
        ["Words", "Synonyms list"],
        ["Happy", "glad"],
    ])
    assert items == []


def test_fallback_header_reads_synonyms_two_columns_right():
    rows = [
        ["No.", "Word", "Meaning", "X", "Y"],
        ["1", "Resilient", "tough", "hardy", "ignored"],
    ]
    extractor = TabularExtractor()

    layout = extractor.detect_header(extractor._rows(rows))
    assert layout.fallback is True
    assert layout.word_col == 1
    assert layout.synonyms_col == 3

    items = extractor.extract(rows)
    assert [(i.word, i.synonyms) for i in items] == [("Resilient", ["hardy"])]


def test_no_header_yields_nothing():
    assert extract_vocabulary([["Term", "Similar"], ["Happy", "glad"]]) == []
    assert extract_vocabulary([]) == []
    assert extract_vocabulary(None) == []


def test_skip_rules():
    items = extract_vocabulary([
        ["Word", "Synonyms"],
        ["Happy", ""],              # no synonyms
        ["", "glad"],               # no word
        ["A", "an"],                # too short after cleaning
        ["3. (adj.)", "x"],         # cleans to empty
        ["word", "vocabulary"],     # repeated header
        ["Topic: Emotions", "x"],   # section marker
        ["Sad", " ; , "],           # synonyms split to nothing
        ["Sad", "unhappy"],
    ])
    assert [(i.word, i.synonyms) for i in items] == [("Sad", ["unhappy"])]


def test_short_rows_are_skipped_not_errors():
    items = extract_vocabulary([
        ["Word", "Synonyms"],
        ["Happy"],
        None,
        "stray text",
        ["Calm", "serene"],
    ])
    assert [i.word for i in items] == ["Calm"]


def test_duplicate_words_are_kept_in_row_order():
    items = extract_vocabulary([
        ["Word", "Synonyms"],
        ["Happy", "glad"],
        ["Happy", "joyful"],
    ])
    assert [(i.word, i.synonyms) for i in items] == [("Happy", ["glad"]), ("Happy", ["joyful"])]
    assert items[0].id != items[1].id


def test_extraction_is_deterministic_apart_from_ids():
    grid = [
        ["Word", "Synonyms"],
        ["1. Happy (adj.)", "joyful, glad"],
        ["2. Calm", "serene\npeaceful"],
    ]
    first = [(i.word, i.synonyms) for i in extract_vocabulary(grid)]
    second = [(i.word, i.synonyms) for i in extract_vocabulary(grid)]
    assert first == second


def test_include_definitions_copies_definition_column():
    items = extract_vocabulary(
        [
            ["Word", "Meaning", "Synonyms"],
            ["Happy", "feeling pleasure", "glad"],
            ["Calm", "", "serene"],
        ],
        include_definitions=True,
    )
    assert items[0].definition == "feeling pleasure"
    assert items[1].definition is None


def test_numeric_cells_from_dataframe():
    df = pd.DataFrame([
        ["No.", "Word", "Synonyms"],
        [1.0, "Happy", "glad"],
        [2.0, float("nan"), "serene"],
    ])
    items = extract_vocabulary(df)
    assert [i.word for i in items] == ["Happy"]


def test_grid_that_is_not_rows_is_an_error():
    with pytest.raises(ExtractionError):
        extract_vocabulary(42)
    with pytest.raises(ExtractionError):
        extract_vocabulary("Word,Synonyms\nHappy,glad")
