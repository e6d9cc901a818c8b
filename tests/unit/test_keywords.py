"""Tests for keyword, symbol and name-pattern extraction."""

from wavepulse.query.keywords import extract_keywords, extract_name_patterns, extract_symbols


def test_keywords_drop_stopwords_and_short_tokens():
    assert extract_keywords("How does the BaseComponent work?") == ["basecomponent", "work"]


def test_keywords_trim_punctuation_and_dedupe():
    assert extract_keywords("Button, button; BUTTON!") == ["button"]


def test_keywords_empty_query():
    assert extract_keywords("") == []
    assert extract_keywords("is a to") == []


def test_symbols_are_pascal_case_words():
    assert extract_symbols("Where is NavigationService used by WmButton?") == [
        "Where",
        "NavigationService",
        "WmButton",
    ]


def test_name_patterns_from_component_name():
    assert extract_name_patterns("How is WmButton rendered?") == [
        "button",
        "how",
        "wmbutton",
        "rendered",
    ]


def test_name_patterns_keep_camel_case_component():
    patterns = extract_name_patterns("Explain WmTextArea")
    assert patterns[0] == "textArea"
    assert patterns[1] == "textarea"
    assert len(patterns) == len(set(patterns))
