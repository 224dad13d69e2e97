"""
Logging helpers: coloured, timestamped hook output with rich-style sections.

Messages are printed as plain text: preference values, URLs and file paths
may contain square brackets that rich would otherwise read as markup.
"""
from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

_console     = Console(highlight=False)
_console_err = Console(stderr=True, highlight=False)

# status → (glyph, style) for hook outcomes
_OUTCOMES = {
    "ok":      ("→", "green"),
    "skipped": ("→", "dim"),
    "failed":  ("→", "bold red"),
}


def _ts() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _line(glyph: str, style: str, msg: str) -> str:
    return f"[dim]{_ts()}[/dim]  [{style}]{glyph}[/{style}]  {escape(msg)}"


def section(title: str) -> None:
    _console.rule(f"[bold cyan]{escape(title)}[/bold cyan]")


def info(msg: str) -> None:
    _console.print(_line("ℹ", "blue", msg))


def success(msg: str) -> None:
    _console.print(_line("✔", "bold green", msg))


def warn(msg: str) -> None:
    _console.print(_line("⚠", "bold yellow", msg))


def error(msg: str) -> None:
    _console_err.print(_line("✖", "bold red", msg))


def step(index: int, total: int, msg: str) -> None:
    label = escape(f"[{index}/{total}]")
    _console.print(f"[dim]{_ts()}[/dim]  [bold magenta]{label}[/bold magenta]  {escape(msg)}")


def outcome(status: str, msg: str) -> None:
    """One hook's result line; failures go to stderr."""
    glyph, style = _OUTCOMES[status]
    console = _console_err if status == "failed" else _console
    console.print(f"          [{style}]{glyph} {escape(msg)}[/{style}]")


def banner(title: str, subtitle: str = "") -> None:
    text = Text(title, style="bold cyan")
    if subtitle:
        text.append(f"\n{subtitle}", style="dim")
    _console.print(Panel(text, border_style="cyan"))


def print_table(table) -> None:
    """Render a ``rich.table.Table`` on the shared console."""
    _console.print(table)


def duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    m, s = divmod(int(seconds), 60)
    return f"{m}m{s:02d}s"
