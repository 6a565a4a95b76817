"""Interactive fuzzy picker for template names."""

from __future__ import annotations

from typing import Callable, Protocol, Sequence

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

VISIBLE_ROWS = 12


class Picker(Protocol):
    def select(self, candidates: Sequence[str]) -> list[str] | None:
        """Return the chosen candidates, or None if the user cancelled."""
        ...


def _is_subsequence(query: str, text: str) -> bool:
    it = iter(text)
    return all(ch in it for ch in query)


def fuzzy_filter(query: str, candidates: Sequence[str]) -> list[str]:
    """Candidates matching ``query``, best first.

    Prefix matches rank above substring matches, which rank above in-order
    subsequence matches. Order within a rank follows ``candidates``.
    """
    q = query.strip().casefold()
    if not q:
        return list(candidates)
    prefix: list[str] = []
    substring: list[str] = []
    scattered: list[str] = []
    for candidate in candidates:
        c = candidate.casefold()
        if c.startswith(q):
            prefix.append(candidate)
        elif q in c:
            substring.append(candidate)
        elif _is_subsequence(q, c):
            scattered.append(candidate)
    return prefix + substring + scattered


def get_key() -> str:
    """Get a single keypress in a cross-platform way using readchar."""
    key = readchar.readkey()

    if key == readchar.key.UP or key == readchar.key.CTRL_P:
        return "up"
    if key == readchar.key.DOWN or key == readchar.key.CTRL_N:
        return "down"
    if key == readchar.key.ENTER or key == "\n":
        return "enter"
    if key == readchar.key.ESC or key == "\x1b":
        return "escape"
    if key == readchar.key.TAB or key == readchar.key.SPACE:
        return "toggle"
    if key == readchar.key.BACKSPACE or key == "\x7f":
        return "backspace"
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt

    return key


class FuzzyPicker:
    """Type to filter, Space/Tab to toggle, Enter to confirm, Esc to cancel."""

    def __init__(
        self,
        console: Console | None = None,
        read_key: Callable[[], str] = get_key,
        prompt_text: str = "Select gitignore templates",
    ) -> None:
        self.console = console or Console(stderr=True)
        self.read_key = read_key
        self.prompt_text = prompt_text

    def select(self, candidates: Sequence[str]) -> list[str] | None:
        if not candidates:
            return None

        query = ""
        cursor = 0
        chosen: list[str] = []
        visible = list(candidates)

        def build_panel() -> Panel:
            table = Table.grid(padding=(0, 1))
            table.add_column(width=2)
            table.add_column()

            table.add_row("", Text.assemble(("> ", "bold cyan"), query, ("▏", "cyan")))
            start = max(0, cursor - VISIBLE_ROWS + 1)
            for i, name in enumerate(visible[start : start + VISIBLE_ROWS], start=start):
                pointer = "▶" if i == cursor else " "
                mark = "[cyan]☑[/cyan]" if name in chosen else "[bright_black]☐[/bright_black]"
                label = Text(name, style="bold cyan" if i == cursor else "white")
                table.add_row(pointer, Text.assemble(Text.from_markup(mark), " ", label))
            if not visible:
                table.add_row("", Text("No matching templates", style="yellow"))

            table.add_row("", "")
            table.add_row(
                "",
                Text(
                    f"{len(visible)}/{len(candidates)} shown, {len(chosen)} selected. "
                    "Type to filter, ↑/↓ move, Space toggle, Enter confirm, Esc cancel",
                    style="dim",
                ),
            )
            return Panel(table, title=f"[bold]{self.prompt_text}[/bold]", border_style="cyan", padding=(1, 2))

        with Live(build_panel(), console=self.console, transient=True, auto_refresh=False) as live:
            while True:
                try:
                    key = self.read_key()
                except KeyboardInterrupt:
                    return None

                if key == "escape":
                    return None
                if key == "enter":
                    if chosen:
                        return list(chosen)
                    if visible:
                        return [visible[cursor]]
                elif key == "up" and visible:
                    cursor = (cursor - 1) % len(visible)
                elif key == "down" and visible:
                    cursor = (cursor + 1) % len(visible)
                elif key == "toggle" and visible:
                    name = visible[cursor]
                    if name in chosen:
                        chosen.remove(name)
                    else:
                        chosen.append(name)
                elif key == "backspace":
                    query = query[:-1]
                    visible = fuzzy_filter(query, candidates)
                    cursor = 0
                elif len(key) == 1 and key.isprintable():
                    query += key
                    visible = fuzzy_filter(query, candidates)
                    cursor = 0

                live.update(build_panel(), refresh=True)
