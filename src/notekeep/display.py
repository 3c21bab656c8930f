"""
Terminal rendering for Notekeep.

List view and detail view for notes.
"""

import os
from typing import Sequence

from notekeep.models import Note


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    STRIKE = "\033[9m"

    # Foreground colors
    GREEN = "\033[32m"
    BLUE = "\033[34m"
    WHITE = "\033[37m"

    # Bright foreground colors
    BRIGHT_BLACK = "\033[90m"  # Gray
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        # Disable if NO_COLOR is set
        if os.environ.get("NO_COLOR"):
            return False
        return True


def c(text: str, *codes: str) -> str:
    """Apply color codes to text if colors are enabled."""
    if not Colors.enabled():
        return text
    return "".join(codes) + text + Colors.RESET


def short_id(note: Note) -> str:
    """First 8 hex digits of the note id."""
    return note.id.hex[:8]


def format_note_list(notes: Sequence[Note]) -> str:
    """Render the list view: position, short id, status mark, title."""
    if not notes:
        return c("No notes yet.", Colors.DIM)

    lines = [c("━━━ NOTES ━━━", Colors.BOLD, Colors.BLUE), ""]

    # Column header
    lines.append(c(f"{'#':>4}  {'ID':8}  {' ':1}  TITLE", Colors.DIM))
    lines.append(c("─" * 60, Colors.DIM))

    for position, note in enumerate(notes, start=1):
        pos_str = c(f"{position:>4}", Colors.BOLD, Colors.WHITE)
        id_str = c(short_id(note), Colors.DIM)
        title = note.title[:42]

        if note.is_completed:
            mark = c("✓", Colors.BRIGHT_GREEN)
            title = c(title, Colors.STRIKE, Colors.BRIGHT_BLACK)
        else:
            mark = c("○", Colors.BRIGHT_BLACK)

        lines.append(f"{pos_str}  {id_str}  {mark}  {title}")

    done = sum(1 for note in notes if note.is_completed)
    lines.append("")
    lines.append(c(f"{len(notes)} notes, {done} completed", Colors.DIM))

    return "\n".join(lines)


def format_note_detail(note: Note) -> str:
    """Render the detail view of a single note."""
    if note.is_completed:
        status = c("Completed", Colors.GREEN)
    else:
        status = c("Open", Colors.BRIGHT_YELLOW)

    lines = [
        c(note.title, Colors.BOLD),
        c(f"id: {note.id}", Colors.DIM),
        f"status: {status}",
        c("─" * 60, Colors.DIM),
        note.content,
    ]
    return "\n".join(lines)
