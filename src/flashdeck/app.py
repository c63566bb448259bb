"""Interactive CLI application."""
import logging
from datetime import date

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from flashdeck.config import AppSettings
from flashdeck.dashboard import get_deck_overview, get_mastery_color, get_study_stats
from flashdeck.db import ProgressSaveError, init_db, load_progress, reset_progress, save_progress
from flashdeck.decks import find_deck, load_decks
from flashdeck.models import Deck, ProgressStore, SessionSummary
from flashdeck.progress import (
    SESSION_MODES, apply_rating, clear_progress, export_progress, fold_session,
    select_session_cards,
)
from flashdeck.session import EmptyDeck, end_session, record_rating, start_session
from flashdeck.sm2 import Rating

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
RATING_KEYS = {
    "a": Rating.AGAIN,
    "h": Rating.HARD,
    "g": Rating.GOOD,
    "e": Rating.EASY,
}


class SessionExitRequested(Exception):
    """Raised when the user types q or menu in the middle of a session."""


def session_prompt(prompt: str, choices: list[str] | None = None, default: str = "") -> str:
    """Prompt.ask that lets the user bail out of a session with q or menu."""
    if choices is not None:
        choices = list(choices) + [w for w in EXIT_WORDS if w not in choices]
        answer = Prompt.ask(prompt, choices=choices)
    else:
        answer = Prompt.ask(prompt, default=default)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def _configure_logging(log_level: str) -> None:
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def _save(db_path: str, store: ProgressStore) -> bool:
    """Persist the store; on failure keep going, the next save writes everything."""
    try:
        save_progress(db_path, store)
    except ProgressSaveError as e:
        logger.error("%s", e)
        console.print("[yellow]Could not save progress, will retry after the next card.[/yellow]")
        return False
    return True


def show_welcome():
    console.print(Panel(
        "[bold]flashdeck[/bold]\n[dim]Spaced repetition flashcards[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("decks", "List available decks"),
        ("study", "Study a deck"),
        ("progress", "Streak, mastery and deck progress"),
        ("settings", "Daily card limits"),
        ("export", "Export progress as JSON"),
        ("reset", "Reset all progress"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_summary(summary: SessionSummary) -> None:
    console.print(Panel(
        f"Cards studied: [bold]{summary.studied}[/bold]\n"
        f"Correct: [bold green]{summary.correct}[/bold green]\n"
        f"Accuracy: [bold]{summary.accuracy}%[/bold]",
        title=f"Session Complete: {summary.deck}", border_style="green",
    ))


def run_study_session(db_path: str, store: ProgressStore, deck: Deck, cards: list) -> SessionSummary:
    """Drill ``cards`` one by one, saving after every rating.

    Raises EmptyDeck when there is nothing to study.
    """
    session = start_session(deck.name, cards)
    total = len(session.cards)
    console.print(f"\n[bold]{deck.icon} {deck.name}[/bold] — {total} cards\n")
    try:
        while not session.is_complete:
            card = session.current_card
            subtitle = " ".join(card.tags) if card.tags else None
            console.print(Panel(
                card.prompt,
                title=f"Card {session.index + 1}/{total} · {card.difficulty}",
                subtitle=subtitle,
                border_style="cyan",
            ))
            session_prompt("[dim]Press Enter to reveal answer[/dim]")
            console.print(Panel(card.answer, border_style="green"))
            key = session_prompt(
                "Rate yourself (a=again, h=hard, g=good, e=easy)", choices=list(RATING_KEYS),
            )
            rating = RATING_KEYS[key]
            apply_rating(store, deck.name, card.id, rating)
            record_rating(session.stats, rating)
            _save(db_path, store)
            session.advance()
            console.print(f"[dim]{session.progress_percent:.0f}% of this session done[/dim]\n")
    except SessionExitRequested:
        console.print("[dim]Session ended early, your ratings so far are saved.[/dim]")

    summary = end_session(session.stats)
    fold_session(store, summary)
    _save(db_path, store)
    show_summary(summary)
    return summary


def choose_deck(decks: list[Deck]) -> Deck:
    for i, deck in enumerate(decks, 1):
        console.print(f"  [cyan]{i}[/cyan]) {deck.icon} {deck.name} [dim]({len(deck.cards)} cards)[/dim]")
    while True:
        answer = Prompt.ask("Select deck (number or name)").strip()
        if answer.isdigit() and 1 <= int(answer) <= len(decks):
            return decks[int(answer) - 1]
        deck = find_deck(decks, answer)
        if deck:
            return deck
        console.print(f"[red]No deck matches {answer!r}.[/red]")


def cmd_decks(store: ProgressStore, decks: list[Deck]):
    table = Table(title="Decks")
    table.add_column("Deck", style="cyan")
    table.add_column("Cards", justify="right")
    table.add_column("Mastered", justify="right")
    table.add_column("Description")
    for overview, deck in zip(get_deck_overview(store, decks), decks):
        table.add_row(
            f"{overview['icon']} {overview['name']}".strip(),
            str(overview["total"]),
            str(overview["mastered"]),
            deck.description,
        )
    console.print(table)


def cmd_study(db_path: str, store: ProgressStore, decks: list[Deck]):
    if not decks:
        console.print("[yellow]No decks found. Check FLASHDECK_DECKS.[/yellow]")
        return
    console.print("\n[bold]Study[/bold]")
    deck = choose_deck(decks)
    mode = Prompt.ask("Mode", choices=list(SESSION_MODES), default="due")
    cards = select_session_cards(store, deck, mode=mode)
    try:
        run_study_session(db_path, store, deck, cards)
    except EmptyDeck:
        if mode == "due":
            console.print(f"[yellow]No cards due in {deck.name} right now![/yellow]")
        else:
            console.print(f"[yellow]{deck.name} has no cards yet![/yellow]")


def cmd_progress(store: ProgressStore, decks: list[Deck]):
    stats = get_study_stats(store, date.today())
    console.print(Panel(
        f"Streak: [bold]{stats['current_streak']}[/bold] days  |  "
        f"Today: [bold]{stats['today']}[/bold]  |  "
        f"Total studied: [bold]{stats['total_studied']}[/bold]  |  "
        f"Mastered: [bold]{stats['mastered']}[/bold]  |  "
        f"Study time: [bold]{stats['study_minutes']}m[/bold]",
        title="Progress", border_style="blue",
    ))
    table = Table(title="Deck Progress")
    table.add_column("Deck", style="cyan")
    table.add_column("Mastered", justify="right")
    table.add_column("Progress")
    for overview in get_deck_overview(store, decks):
        color = get_mastery_color(overview["percent"])
        bar_filled = int(overview["percent"] / 5)
        bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
        table.add_row(
            f"{overview['icon']} {overview['name']}".strip(),
            f"{overview['mastered']} / {overview['total']}",
            f"{bar} [{color}]{overview['label']}[/{color}]",
        )
    console.print(table)


def cmd_settings(db_path: str, store: ProgressStore):
    settings = store.settings
    new_cards = IntPrompt.ask("New cards per session", default=settings.new_cards_per_day)
    reviews = IntPrompt.ask("Review cards per session", default=settings.review_cards_per_day)
    if new_cards < 0 or reviews < 0:
        console.print("[red]Limits cannot be negative.[/red]")
        return
    settings.new_cards_per_day = new_cards
    settings.review_cards_per_day = reviews
    if _save(db_path, store):
        console.print("[green]Settings saved.[/green]")


def cmd_export(store: ProgressStore):
    file_path = Prompt.ask("Export to", default="flashcard-progress.json")
    path = export_progress(store, file_path)
    console.print(f"[green]Progress exported to {path}[/green]")


def cmd_reset(db_path: str, store: ProgressStore):
    if not Confirm.ask("Reset all progress? This cannot be undone", default=False):
        return
    reset_progress(db_path)
    clear_progress(store)
    console.print("[green]Progress reset.[/green]")


def main():
    settings = AppSettings.from_env()
    _configure_logging(settings.log_level)
    db_path = settings.db_path
    init_db(db_path)
    store = load_progress(db_path)
    decks = load_decks(settings.decks_dir)
    logger.info("Loaded %d decks from %s", len(decks), settings.decks_dir)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        try:
            if choice == "decks":
                cmd_decks(store, decks)
            elif choice == "study":
                cmd_study(db_path, store, decks)
            elif choice == "progress":
                cmd_progress(store, decks)
            elif choice == "settings":
                cmd_settings(db_path, store)
            elif choice == "export":
                cmd_export(store)
            elif choice == "reset":
                cmd_reset(db_path, store)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you tomorrow, keep the streak going![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
