# tests/test_decks.py
import pytest

from flashdeck.decks import (
    CONTENT_DIR, DeckFormatError, find_deck, load_decks, parse_markdown_cards, read_deck_file,
)

CARD_DECK = """# JavaScript Master

> Core concepts.

## Card 1: Closures

**Q:** What is a closure?
Explain briefly.

**A:** A function plus its
lexical scope.

**Difficulty:** Hard
**Frequency:** ⭐⭐⭐
**Tags:** #scope #functions

## Card 2: Hoisting

**Q:** What is hoisted?
**A:** Declarations.
"""

QUESTION_DECK = """# React

## Question 1: Keys
**Q:** Why keys?
**A:** Stable identity.

More detail here.

## Question 2: No answer marker
Just some text.

## Question 3: Effects
**Q:** When does cleanup run?
**A:** Before re-run and on unmount.
"""


def test_parse_card_blocks():
    cards = parse_markdown_cards(CARD_DECK, "JS")
    assert [c.id for c in cards] == ["1", "2"]
    first = cards[0]
    assert first.title == "Closures"
    assert first.prompt == "What is a closure? Explain briefly."
    assert first.answer == "A function plus its lexical scope."
    assert first.difficulty == "Hard"
    assert first.frequency == "⭐⭐⭐"
    assert first.tags == ["#scope", "#functions"]
    assert first.deck == "JS"
    assert cards[1].difficulty == "Medium"
    assert cards[1].answer == "Declarations."


def test_parse_question_blocks():
    cards = parse_markdown_cards(QUESTION_DECK, "React")
    assert [c.id for c in cards] == ["1", "3"]
    assert cards[0].prompt == "Why keys?"
    assert cards[0].answer.startswith("Stable identity.")
    assert "More detail here." in cards[0].answer
    assert cards[1].answer == "Before re-run and on unmount."


def test_parse_no_cards():
    assert parse_markdown_cards("# Empty\n\nNothing here.", "Empty") == []


def test_read_markdown_deck(tmp_path):
    f = tmp_path / "javascript.md"
    f.write_text(CARD_DECK, encoding="utf-8")
    deck = read_deck_file(str(f))
    assert deck.name == "JavaScript Master"
    assert deck.description == "Core concepts."
    assert len(deck.cards) == 2
    assert all(c.deck == "JavaScript Master" for c in deck.cards)


def test_read_markdown_without_title_uses_stem(tmp_path):
    f = tmp_path / "react-hooks.md"
    f.write_text(QUESTION_DECK.replace("# React\n", ""), encoding="utf-8")
    assert read_deck_file(str(f)).name == "react-hooks"


def test_read_yaml_deck(tmp_path):
    f = tmp_path / "ts.yaml"
    f.write_text(
        "name: TypeScript\n"
        "icon: T\n"
        "cards:\n"
        "  - question: What is never?\n"
        "    answer: The empty type.\n"
        "    tags: types narrowing\n"
        "  - id: x9\n"
        "    question: unknown vs any?\n"
        "    answer: unknown must be narrowed.\n"
        "    difficulty: Easy\n",
        encoding="utf-8",
    )
    deck = read_deck_file(str(f))
    assert deck.name == "TypeScript"
    assert deck.icon == "T"
    assert [c.id for c in deck.cards] == ["1", "x9"]
    assert deck.cards[0].tags == ["types", "narrowing"]
    assert deck.cards[1].difficulty == "Easy"


def test_read_json_deck(tmp_path):
    f = tmp_path / "css.json"
    f.write_text('{"cards": [{"Q": "What is BEM?", "A": "A naming convention."}]}', encoding="utf-8")
    deck = read_deck_file(str(f))
    assert deck.name == "css"
    assert deck.cards[0].prompt == "What is BEM?"
    assert deck.cards[0].answer == "A naming convention."


def test_read_json_missing_cards(tmp_path):
    f = tmp_path / "broken.json"
    f.write_text('{"name": "Broken"}', encoding="utf-8")
    with pytest.raises(DeckFormatError):
        read_deck_file(str(f))


def test_read_json_card_without_answer(tmp_path):
    f = tmp_path / "broken.json"
    f.write_text('{"cards": [{"question": "Q?"}]}', encoding="utf-8")
    with pytest.raises(DeckFormatError):
        read_deck_file(str(f))


def test_read_unsupported_format(tmp_path):
    f = tmp_path / "deck.pdf"
    f.write_bytes(b"%PDF")
    with pytest.raises(DeckFormatError):
        read_deck_file(str(f))


def test_load_decks_skips_broken_files(tmp_path):
    (tmp_path / "b.md").write_text(CARD_DECK, encoding="utf-8")
    (tmp_path / "a.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    decks = load_decks(tmp_path)
    assert [d.name for d in decks] == ["JavaScript Master"]


def test_bundled_decks_load():
    decks = load_decks(CONTENT_DIR)
    names = {d.name for d in decks}
    assert {"JavaScript Master", "React Deep Dive", "TypeScript Essentials"} <= names
    assert all(d.cards for d in decks)


def test_find_deck():
    decks = load_decks(CONTENT_DIR)
    assert find_deck(decks, "react deep dive").name == "React Deep Dive"
    assert find_deck(decks, "Cobol") is None


def test_read_deck_invalid_utf8(tmp_path):
    f = tmp_path / "latin.md"
    f.write_bytes(b"\xff\xfe# Deck\n")
    with pytest.raises(DeckFormatError):
        read_deck_file(str(f))


def test_read_yaml_scalar_tags(tmp_path):
    f = tmp_path / "bad.yaml"
    f.write_text("cards:\n  - question: Q?\n    answer: A.\n    tags: 5\n", encoding="utf-8")
    with pytest.raises(DeckFormatError):
        read_deck_file(str(f))


@pytest.mark.parametrize("name,content", [
    ("bad.md", b"\xff\xfe## Card 1: Broken\n"),
    ("bad.yaml", b"cards:\n  - question: Q?\n    answer: A.\n    tags: 5\n"),
    ("dupes.json", b'{"cards": [{"id": 1, "Q": "a", "A": "b"}, {"id": 1, "Q": "c", "A": "d"}]}'),
])
def test_load_decks_skips_undecodable_and_malformed_files(tmp_path, name, content):
    (tmp_path / "good.yaml").write_text(
        "name: Good\ncards:\n  - question: Q?\n    answer: A.\n", encoding="utf-8",
    )
    (tmp_path / name).write_bytes(content)
    assert [d.name for d in load_decks(tmp_path)] == ["Good"]


def test_duplicate_markdown_card_numbers():
    text = CARD_DECK + "\n## Card 2: Again\n\n**Q:** Same number?\n**A:** Yes.\n"
    with pytest.raises(DeckFormatError):
        parse_markdown_cards(text, "JS")


def test_duplicate_yaml_ids(tmp_path):
    f = tmp_path / "dupes.yaml"
    f.write_text(
        "cards:\n"
        "  - id: a\n    question: Q1?\n    answer: A1.\n"
        "  - id: a\n    question: Q2?\n    answer: A2.\n",
        encoding="utf-8",
    )
    with pytest.raises(DeckFormatError):
        read_deck_file(str(f))
