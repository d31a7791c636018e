from typing import Optional, Sequence

from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from prime_art.art import split_rows
from prime_art.progress_queue import ProgressQueue
from prime_art.progress_snapshot import SearchProgress
from prime_art.search import estimate_attempts


COLORS = {
    "searching": "green",
    "found": "spring_green2",
    "changed_digit": "bold yellow on black",
    "border": {
        "searching": "cyan",
        "found": "bright_green",
    },
}


def candidate_to_text(candidate: str, row_lengths: Sequence[int], changed_index: Optional[int], found: bool) -> Text:
    """Lay the candidate out as digit art and highlight the last changed digit."""
    style = COLORS["found"] if found else COLORS["searching"]
    text = Text(no_wrap=True, overflow="crop")
    offset = 0
    for row_idx, row in enumerate(split_rows(candidate, row_lengths)):
        if row_idx:
            text.append("\n")
        if changed_index is not None and offset <= changed_index < offset + len(row):
            i = changed_index - offset
            text.append(row[:i], style=style)
            text.append(row[i], style=COLORS["changed_digit"])
            text.append(row[i + 1:], style=style)
        else:
            text.append(row, style=style)
        offset += len(row)
    return text


def render(progress: Optional[SearchProgress], row_lengths: Sequence[int]):
    """Render the latest search progress snapshot."""
    if progress is None:
        return Panel("Waiting for first update…", title="Prime Search", border_style="dim")

    state = "found" if progress.found else "searching"
    estimate = estimate_attempts(progress.digits)

    stats = Table.grid(padding=(0, 2))
    stats.add_column(style="dim", justify="right")
    stats.add_column()
    stats.add_row("Attempts", f"{progress.attempts:,}")
    stats.add_row("Expected", f"~{estimate:,.0f}")
    stats.add_row("Digits", f"{progress.digits:,}")
    stats.add_row(
        "Changed",
        "-" if progress.changed_digit_index is None else str(progress.changed_digit_index),
    )

    body = Table.grid()
    body.add_column()
    body.add_row(stats)
    body.add_row("")
    body.add_row(candidate_to_text(
        progress.current_candidate, row_lengths, progress.changed_digit_index, progress.found,
    ))

    title = "Prime found" if progress.found else f"Searching  |  attempt {progress.attempts:,}"
    return Panel(body, title=title, border_style=COLORS["border"][state])


def ui_loop(progress_queue: ProgressQueue[SearchProgress], row_lengths: Sequence[int]) -> None:
    """Render snapshots until the queue is closed."""
    with Live(render(None, row_lengths), refresh_per_second=30, screen=False) as live:
        for progress in progress_queue:
            live.update(render(progress, row_lengths))
