"""Interactive CLI application."""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from vocab_trainer.dashboard import (
    get_quality_counts, get_retention_color, get_retention_label, get_study_stats,
)
from vocab_trainer.db import DEFAULT_DB_PATH, init_db
from vocab_trainer.errors import CardNotFound, InvalidQuality, VocabTrainerError
from vocab_trainer.importer import import_cards, seed_starter_cards
from vocab_trainer.models import DIRECTION_MODES
from vocab_trainer.selection import MODES, count_by_mode, select_session
from vocab_trainer.session import QuizSession, build_repeat_session
from vocab_trainer.settings import QuizSettings, load_quiz_settings, save_quiz_settings
from vocab_trainer.store import (
    SqliteCardStore, add_card, delete_card, get_card, load_cards, update_card,
)

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
QUALITY_CHOICES = ["1", "2", "3", "4", "5"]
QUALITY_LABELS = {
    1: ("Forgot", "red"),
    2: ("Wrong", "dark_orange"),
    3: ("Hard", "yellow"),
    4: ("Good", "green"),
    5: ("Perfect", "bright_green"),
}
MODE_DESCRIPTIONS = {
    "due": "Cards whose review date has passed",
    "new": "Cards you have not learned yet",
    "review": "Cards you have learned before",
    "random": "The whole collection, shuffled",
}


class SessionExitRequested(Exception):
    """The user asked to leave the running session."""


def session_prompt(prompt: str, **kwargs) -> str:
    """Prompt.ask that raises SessionExitRequested on 'q' or 'menu'."""
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    answer = session_prompt(prompt, choices=[*choices, *EXIT_WORDS], show_choices=False)
    return int(answer)


def show_welcome():
    console.print(Panel(
        "[bold]Vocab Trainer[/bold]\n[dim]Spaced repetition with SM-2[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("quiz", "Start a quiz session"),
        ("add", "Add a card"),
        ("edit", "Edit a card"),
        ("delete", "Delete a card"),
        ("list", "List cards"),
        ("stats", "Progress overview"),
        ("import", "Import cards from a file"),
        ("settings", "Quiz settings"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_session_summary(session: QuizSession) -> None:
    stats = session.stats
    title = "Repeat Result" if session.repeat else "Quiz Result"
    table = Table(title=title)
    table.add_column("Rating")
    table.add_column("Count", justify="right")
    for quality, (label, color) in QUALITY_LABELS.items():
        count = sum(1 for r in session.results if r.quality == quality)
        if count:
            table.add_row(f"[{color}]{quality} {label}[/{color}]", str(count))
    console.print(table)
    console.print(
        f"[bold]Correct: {stats.correct}/{stats.total} ({stats.accuracy}%)[/bold]  |  "
        f"Best streak: [bold]{stats.max_streak}[/bold]"
    )


def run_quiz_session(session: QuizSession) -> None:
    """Drive a session from the console until it completes.

    Raises SessionExitRequested after ending the session early.
    """
    if session.is_finished:
        console.print("[yellow]No cards to review right now![/yellow]")
        return
    label = "Repeat Pass" if session.repeat else "Quiz"
    console.print(f"\n[bold]{label}[/bold]: {len(session.cards)} cards [dim](q to quit)[/dim]\n")
    try:
        while not session.is_finished:
            position, total = session.progress
            console.print(Panel(session.prompt, title=f"Card {position}/{total}", border_style="cyan"))
            session_prompt("[dim]Press Enter to reveal answer[/dim]", default="", show_default=False)
            console.print(Panel(session.reveal(), border_style="green"))
            if session.current_card.notes:
                console.print(f"[dim]{session.current_card.notes}[/dim]")
            while True:
                rating = session_int_prompt(
                    "Rate yourself (1=forgot, 2=wrong, 3=hard, 4=good, 5=perfect)",
                    choices=QUALITY_CHOICES,
                )
                try:
                    session.rate(rating, datetime.now())
                    break
                except InvalidQuality as e:
                    console.print(f"[red]{e}[/red]")
                except CardNotFound as e:
                    console.print(f"[yellow]{e}, skipped.[/yellow]")
                    break
            console.print()
    except SessionExitRequested:
        session.exit()
        console.print("[dim]Session ended early. Ratings so far are saved.[/dim]")
        raise
    finally:
        for failure in session.wait_for_persistence():
            console.print(f"[red]{failure}[/red]")
    show_session_summary(session)


def run_with_repeats(session: QuizSession) -> None:
    """Run a session, then offer repeat passes while wrong answers remain."""
    run_quiz_session(session)
    while session.wrong_answers():
        wrong = len(session.wrong_answers())
        if not Confirm.ask(f"Repeat the {wrong} wrong answers?", default=True):
            break
        session = build_repeat_session(session)
        run_quiz_session(session)
    if session.results and not session.wrong_answers():
        console.print("[green]All cards correct![/green]")


def cmd_quiz(db_path: str):
    settings = load_quiz_settings(db_path)
    store = SqliteCardStore(db_path)
    cards = store.load_all()
    now = datetime.now()
    counts = count_by_mode(cards, now)

    table = Table(title="Quiz Modes")
    table.add_column("Mode", style="cyan")
    table.add_column("Cards", justify="right")
    table.add_column("Description")
    for mode in MODES:
        table.add_row(mode, str(counts[mode]), MODE_DESCRIPTIONS[mode])
    console.print(table)

    mode = Prompt.ask("Quiz mode", choices=list(MODES), default="due")
    selected = select_session(cards, mode, now, limit=settings.words_per_quiz)
    with ThreadPoolExecutor(max_workers=1) as executor:
        session = QuizSession(
            selected, store=store, direction_mode=settings.direction, executor=executor,
        )
        try:
            run_with_repeats(session)
        except SessionExitRequested:
            console.print("[dim]Back to the menu.[/dim]")


def _ask_tags(default: str = "") -> list[str]:
    return Prompt.ask("Tags (comma separated)", default=default).split(",")


def cmd_add(db_path: str):
    front = Prompt.ask("Front")
    back = Prompt.ask("Back")
    tags = _ask_tags()
    notes = Prompt.ask("Notes", default="")
    try:
        card = add_card(db_path, front, back, tags=tags, notes=notes)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Added {card.front} → {card.back}[/green] [dim]({card.id})[/dim]")


def cmd_edit(db_path: str):
    card_id = Prompt.ask("Card id")
    try:
        card = get_card(db_path, card_id)
    except CardNotFound as e:
        console.print(f"[red]{e}[/red]")
        return
    front = Prompt.ask("Front", default=card.front)
    back = Prompt.ask("Back", default=card.back)
    tags = _ask_tags(", ".join(card.tags))
    notes = Prompt.ask("Notes", default=card.notes)
    try:
        update_card(db_path, card_id, front=front, back=back, tags=tags, notes=notes)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[green]Card updated.[/green]")


def cmd_delete(db_path: str):
    card_id = Prompt.ask("Card id")
    try:
        card = get_card(db_path, card_id)
    except CardNotFound as e:
        console.print(f"[red]{e}[/red]")
        return
    if Confirm.ask(f"Delete {card.front} → {card.back}?", default=False):
        delete_card(db_path, card_id)
        console.print("[green]Card deleted.[/green]")


def cmd_list(db_path: str):
    cards = load_cards(db_path)
    if not cards:
        console.print("[yellow]No cards yet. Use 'add' or 'import'.[/yellow]")
        return
    table = Table(title=f"Cards ({len(cards)})")
    table.add_column("Id", style="dim")
    table.add_column("Front", style="cyan")
    table.add_column("Back")
    table.add_column("Tags")
    table.add_column("Reps", justify="right")
    table.add_column("Ease", justify="right")
    table.add_column("Next review")
    for card in cards:
        s = card.schedule
        table.add_row(
            card.id, card.front, card.back, ", ".join(card.tags), str(s.repetitions),
            f"{s.ease_factor:.2f}",
            s.next_review.strftime("%Y-%m-%d %H:%M") if s.next_review else "new",
        )
    console.print(table)


def cmd_stats(db_path: str):
    stats = get_study_stats(db_path, datetime.now())
    retention = stats["retention"]
    color = get_retention_color(retention)
    label = get_retention_label(retention)
    console.print(Panel(
        f"Cards: [bold]{stats['total']}[/bold]  |  Learned: [bold]{stats['learned']}[/bold]  |  "
        f"New: [bold]{stats['available']}[/bold]  |  Due: [bold]{stats['to_review']}[/bold]",
        title="Collection", border_style="blue",
    ))

    bar_filled = int(retention / 5)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(f"\n  Retention: [bold]{retention}%[/bold] {bar} [{color}]{label}[/{color}]")
    console.print(f"  Reviews: [bold]{stats['reviews']}[/bold] ({stats['reviews_today']} today)\n")

    counts = get_quality_counts(db_path)
    if any(counts.values()):
        table = Table(title="Ratings")
        table.add_column("Rating")
        table.add_column("Count", justify="right")
        for quality, (name, qcolor) in QUALITY_LABELS.items():
            table.add_row(f"[{qcolor}]{quality} {name}[/{qcolor}]", str(counts[quality]))
        console.print(table)


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    try:
        result = import_cards(db_path, file_path)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(
        f"[green]Imported {result['imported']} cards from {result['filename']}[/green]"
        + (f" [dim]({result['skipped']} skipped)[/dim]" if result["skipped"] else "")
    )


def cmd_settings(db_path: str):
    current = load_quiz_settings(db_path)
    console.print(
        f"Cards per quiz: [bold]{current.words_per_quiz}[/bold]  |  "
        f"Direction: [bold]{current.direction}[/bold]"
    )
    words = IntPrompt.ask("Cards per quiz", default=current.words_per_quiz)
    direction = Prompt.ask("Direction", choices=list(DIRECTION_MODES), default=current.direction)
    try:
        save_quiz_settings(db_path, QuizSettings(words_per_quiz=words, direction=direction))
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[green]Settings saved.[/green]")


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("VOCAB_TRAINER_LOG_LEVEL", "WARNING").upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main(db_path: str = DEFAULT_DB_PATH):
    configure_logging()
    init_db(db_path)
    added = seed_starter_cards(db_path)
    if added:
        console.print(f"[dim]Loaded {added} starter cards.[/dim]")

    show_welcome()

    commands = {
        "quiz": cmd_quiz,
        "add": cmd_add,
        "edit": cmd_edit,
        "delete": cmd_delete,
        "list": cmd_list,
        "stats": cmd_stats,
        "import": cmd_import,
        "settings": cmd_settings,
    }
    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="quiz").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]A presto![/dim]")
            break
        command = commands.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except VocabTrainerError as e:
            console.print(f"[red]Error: {e}[/red]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
