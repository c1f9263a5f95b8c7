"""
langproc Loader Test Suite

Tests grammar-file loading:
1. A well-formed file (settings, comments, alternatives)
2. Rule syntax: both arrows, epsilon spellings, malformed rules
3. Variables: n and L parsing, bad values, unknown keys
4. Diagnostics: messages, logging, missing sections
5. Loading from disk and end-to-end exploration
"""

import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from langproc import Diagnostic, Strategy, collect_words, load_grammar, parse_grammar


ANBN_SOURCE = """
# a^k b^k
n = 5          # maximum word length
L = {a, b}     # terminal alphabet

S -> aSb | ab
"""


# --- Test 1: Well-formed file ---

def test_well_formed_file():
    loaded = parse_grammar(ANBN_SOURCE)
    grammar = loaded.grammar
    assert loaded.ok
    assert loaded.diagnostics == []
    assert grammar.max_length == 5
    assert grammar.terminals == frozenset({"a", "b"})
    assert [str(r) for r in grammar.rules] == ["S -> aSb", "S -> ab"]


def test_alternatives_share_left_side_in_order():
    loaded = parse_grammar("L={a,b}\nS -> a | b | aS | bS")
    assert [r.left for r in loaded.grammar.rules] == ["S"] * 4
    assert [r.right for r in loaded.grammar.rules] == ["a", "b", "aS", "bS"]


def test_comment_only_and_blank_lines_ignored():
    loaded = parse_grammar("\n   \n# nothing here\n  # indented\nL={a}\nS->a\n")
    assert loaded.ok
    assert len(loaded.grammar.rules) == 1


# --- Test 2: Rule syntax ---

def test_double_arrow_is_a_rule_not_a_variable():
    loaded = parse_grammar("L={a,b}\nS => aSb")
    assert loaded.ok
    assert str(loaded.grammar.rules[0]) == "S -> aSb"


@pytest.mark.parametrize("right", ["{empty}", "ε"])
def test_epsilon_spellings(right):
    loaded = parse_grammar(f"L={{a}}\nA -> {right}")
    rule = loaded.grammar.rules[0]
    assert rule.right == ""
    assert str(rule) == "A -> <empty>"


def test_empty_alternative_is_epsilon():
    loaded = parse_grammar("L={a}\nS -> a |")
    assert [r.right for r in loaded.grammar.rules] == ["a", ""]


def test_rule_without_left_side_is_skipped():
    loaded = parse_grammar("L={a}\n-> ab\nS -> a")
    assert len(loaded.grammar.rules) == 1
    assert len(loaded.diagnostics) == 1
    assert loaded.diagnostics[0].line == 2
    assert "Left -> Right" in loaded.diagnostics[0].message


def test_rule_with_two_arrows_is_skipped():
    loaded = parse_grammar("L={a}\nS -> a -> b\nS -> a")
    assert [str(r) for r in loaded.grammar.rules] == ["S -> a"]
    assert loaded.diagnostics[0].text == "S -> a -> b"


def test_multichar_left_side():
    loaded = parse_grammar("L={a,b,c}\nCB -> BC")
    assert loaded.grammar.rules[0].left == "CB"


# --- Test 3: Variables ---

def test_terminal_letters_extracted_from_braces():
    loaded = parse_grammar("L = {a,b, c,   d   }\nS->a")
    assert loaded.grammar.terminals == frozenset("abcd")


def test_default_length_when_n_missing():
    loaded = parse_grammar("L={a}\nS->a")
    assert loaded.grammar.max_length == 5


@pytest.mark.parametrize("value", ["abc", "0", "-3", ""])
def test_bad_length_keeps_default(value):
    loaded = parse_grammar(f"n = {value}\nL={{a}}\nS->a")
    assert loaded.grammar.max_length == 5
    assert len(loaded.diagnostics) == 1
    assert loaded.diagnostics[0].line == 1


def test_later_length_overrides_earlier():
    loaded = parse_grammar("n=3\nn=7\nL={a}\nS->a")
    assert loaded.grammar.max_length == 7


def test_alphabet_without_letters_reported():
    loaded = parse_grammar("L = {1, 2}\nS->a")
    assert loaded.grammar.terminals == frozenset()
    messages = [d.message for d in loaded.diagnostics]
    assert any("contains no letters" in m for m in messages)
    assert any("No terminal alphabet" in m for m in messages)


def test_unknown_variable_reported_and_skipped():
    loaded = parse_grammar("x = 3\nL={a}\nS->a")
    assert len(loaded.diagnostics) == 1
    assert 'Unknown variable "x"' in loaded.diagnostics[0].message
    assert loaded.grammar.max_length == 5


# --- Test 4: Diagnostics ---

def test_line_neither_rule_nor_setting():
    loaded = parse_grammar("L={a}\nhello world\nS->a")
    diag = loaded.diagnostics[0]
    assert diag.line == 2
    assert str(diag) == 'Line 2: Syntax error in line, neither a rule nor a setting: "hello world". Ignoring.'


def test_missing_alphabet_and_rules():
    loaded = parse_grammar("n = 4")
    assert not loaded.ok
    assert loaded.grammar.rules == ()
    assert [d.line for d in loaded.diagnostics] == [None, None]
    assert str(loaded.diagnostics[0]).endswith("no word can be derived.")


def test_diagnostics_are_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="langproc.loader"):
        parse_grammar("q = 1\nL={a}\nS->a", origin="demo.txt")
    assert any("demo.txt" in rec.getMessage() and 'Unknown variable "q"' in rec.getMessage()
               for rec in caplog.records)


def test_summary_lists_diagnostics():
    loaded = parse_grammar("q = 1\nL={a}\nS->a", origin="demo.txt")
    text = loaded.summary()
    assert "demo.txt" in text
    assert "1 warning(s)" in text


def test_diagnostic_without_text():
    assert str(Diagnostic(None, "Something odd")) == "Something odd."


# --- Test 5: Disk and end-to-end ---

def test_load_grammar_from_file(tmp_path):
    path = tmp_path / "anbn.txt"
    path.write_text(ANBN_SOURCE, encoding="utf-8")
    loaded = load_grammar(path)
    assert loaded.origin == str(path)
    assert loaded.ok
    assert collect_words(loaded.grammar, strategy=Strategy.SEQUENTIAL) == ["ab", "aabb"]


def test_load_grammar_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_grammar(tmp_path / "missing.txt")


def test_loaded_grammar_both_strategies_agree():
    source = "n=6\nL={a,b,c}\nS -> aSBC | aBC\nCB -> BC\naB -> ab\nbB -> bb\nbC -> bc\ncC -> cc\n"
    grammar = parse_grammar(source).grammar
    sequential = collect_words(grammar, strategy=Strategy.SEQUENTIAL)
    concurrent = collect_words(grammar, strategy=Strategy.CONCURRENT)
    assert set(sequential) == set(concurrent)
    assert {"abc", "aabbcc"} <= set(sequential)
