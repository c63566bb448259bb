"""Load flashcard decks from markdown, YAML and JSON files."""
import json
import logging
import re
from pathlib import Path

from flashdeck.models import Card, Deck

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"
DECK_SUFFIXES = (".md", ".yaml", ".yml", ".json")

_CARD_HEADER = re.compile(r"^## Card (\d+):[ \t]*(.*)$", re.MULTILINE)
_QUESTION_BLOCK = re.compile(
    r"^## Question (\d+):[ \t]*(.+?)\n(.*?)(?=^## Question \d+:|\Z)",
    re.MULTILINE | re.DOTALL,
)
_QA = re.compile(r"\*\*Q:\*\*\s*(.*?)\n\*\*A:\*\*", re.DOTALL)


class DeckFormatError(ValueError):
    """Raised when a deck file cannot be turned into cards."""


def _check_unique_ids(cards: list[Card], source: str) -> list[Card]:
    seen = set()
    for card in cards:
        if card.id in seen:
            raise DeckFormatError(f"{source}: duplicate card id {card.id!r}")
        seen.add(card.id)
    return cards


def _parse_card_block(number: str, title: str, body: str, deck: str) -> Card:
    question = ""
    answer = ""
    difficulty = "Medium"
    frequency = ""
    tags = []
    section = ""
    for raw in body.splitlines():
        line = raw.strip()
        if line.startswith("**Q:**"):
            section = "question"
            question = line[len("**Q:**"):].strip()
        elif line.startswith("**A:**"):
            section = "answer"
            answer = line[len("**A:**"):].strip()
        elif line.startswith("**Difficulty:**"):
            difficulty = line[len("**Difficulty:**"):].strip()
        elif line.startswith("**Frequency:**"):
            frequency = line[len("**Frequency:**"):].strip()
        elif line.startswith("**Tags:**"):
            tags = line[len("**Tags:**"):].split()
        elif line and section == "question":
            question += " " + line
        elif line and section == "answer":
            answer += " " + line
    return Card(
        id=number, deck=deck, prompt=question.strip(), answer=answer.strip(),
        title=title.strip(), difficulty=difficulty, frequency=frequency, tags=tags,
    )


def parse_markdown_cards(text: str, deck: str) -> list[Card]:
    """Extract cards from ``## Card N:`` or ``## Question N:`` blocks."""
    headers = list(_CARD_HEADER.finditer(text))
    if headers:
        cards = []
        for i, match in enumerate(headers):
            end = headers[i + 1].start() if i + 1 < len(headers) else len(text)
            body = text[match.end():end]
            cards.append(_parse_card_block(match.group(1), match.group(2), body, deck))
        return _check_unique_ids(cards, deck)

    cards = []
    for number, title, body in _QUESTION_BLOCK.findall(text):
        qa = _QA.search(body)
        if not qa:
            continue
        answer = body[body.index("**A:**") + len("**A:**"):].strip()
        cards.append(Card(
            id=number, deck=deck, prompt=qa.group(1).strip(), answer=answer, title=title.strip(),
        ))
    return _check_unique_ids(cards, deck)


def _markdown_header(text: str, fallback: str) -> tuple[str, str]:
    name = fallback
    description = ""
    seen_title = False
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("## "):
            break
        if line.startswith("# ") and not seen_title:
            name = line[2:].strip()
            seen_title = True
        elif line and not description and not line.startswith("#"):
            description = line.lstrip("> ").strip()
    return name, description


def _deck_from_mapping(data: dict, path: Path) -> Deck:
    if not isinstance(data, dict) or not isinstance(data.get("cards"), list):
        raise DeckFormatError(f"{path.name}: expected a mapping with a 'cards' list")
    name = str(data.get("name") or path.stem)
    cards = []
    for i, item in enumerate(data["cards"], 1):
        try:
            prompt = item.get("question") or item["Q"]
            answer = item.get("answer") or item["A"]
        except (AttributeError, KeyError) as e:
            raise DeckFormatError(f"{path.name}: card {i} needs a question and an answer") from e
        tags = item.get("tags") or []
        if isinstance(tags, str):
            tags = tags.split()
        elif not isinstance(tags, list):
            raise DeckFormatError(f"{path.name}: card {i} tags must be a list or a string")
        cards.append(Card(
            id=str(item.get("id", i)),
            deck=name,
            prompt=str(prompt).strip(),
            answer=str(answer).strip(),
            title=str(item.get("title", "")),
            difficulty=str(item.get("difficulty", "Medium")),
            frequency=str(item.get("frequency", "")),
            tags=[str(t) for t in tags],
        ))
    return Deck(
        name=name,
        path=str(path),
        description=str(data.get("description", "")),
        icon=str(data.get("icon", "")),
        category=str(data.get("category", "by-topic")),
        cards=_check_unique_ids(cards, path.name),
    )


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DeckFormatError(f"{path.name}: not valid UTF-8 ({e})") from e


def read_deck_file(file_path: str) -> Deck:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".md":
        text = _read_text(path)
        name, description = _markdown_header(text, path.stem)
        return Deck(
            name=name,
            path=str(path),
            description=description,
            cards=parse_markdown_cards(text, name),
        )
    elif suffix == ".json":
        try:
            data = json.loads(_read_text(path))
        except json.JSONDecodeError as e:
            raise DeckFormatError(f"{path.name}: invalid JSON ({e})") from e
        return _deck_from_mapping(data, path)
    elif suffix in (".yaml", ".yml"):
        import yaml
        try:
            data = yaml.safe_load(_read_text(path))
        except yaml.YAMLError as e:
            raise DeckFormatError(f"{path.name}: invalid YAML ({e})") from e
        return _deck_from_mapping(data, path)
    raise DeckFormatError(f"Unsupported deck format: {path.name}")


def load_decks(directory: str | Path = CONTENT_DIR) -> list[Deck]:
    """Read every deck file in ``directory``; broken files are skipped."""
    decks = []
    for path in sorted(Path(directory).iterdir()):
        if path.suffix.lower() not in DECK_SUFFIXES:
            continue
        try:
            decks.append(read_deck_file(str(path)))
        except (DeckFormatError, OSError) as e:
            logger.warning("Skipping deck %s: %s", path.name, e)
    decks.sort(key=lambda d: d.name.lower())
    return decks


def find_deck(decks: list[Deck], name: str) -> Deck | None:
    wanted = name.strip().lower()
    for deck in decks:
        if deck.name.lower() == wanted:
            return deck
    return None
