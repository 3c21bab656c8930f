"""
CLI for Notekeep.

Minimal CLI using stdlib for fast startup.
Subcommands are imported lazily to avoid startup overhead.

Usage:
    notekeep add "Groceries" "Milk, eggs"   # Add a note
    notekeep list                           # List notes
    notekeep --help                         # Show help
"""

import sys


def print_help() -> None:
    """Print help message."""
    print("""notekeep - local note keeper

Usage:
    notekeep add <title> <content>          Add a note
    notekeep list                           List notes
    notekeep show <ref>                     Show a note
    notekeep edit <ref> <title> <content>   Replace title and content
    notekeep toggle <ref>                   Mark completed / uncompleted
    notekeep rm <ref> [<ref>...]            Delete notes
    notekeep mv <ref> [<ref>...] --to <n>   Move notes before position n
    notekeep status                         Show health check

Options:
    notekeep --help, -h                     Show this help
    notekeep --version, -v                  Show version

<ref> is a list position (1, 2, ...) or an id prefix from `notekeep list`.
Numbers are read as positions first; an all-digit id prefix matches only
when no note sits at that position.

Examples:
    notekeep add Groceries "Milk, eggs"
    notekeep toggle 1
    notekeep edit 1 Groceries "Milk, eggs, bread"
    notekeep rm 1""")


def print_version() -> None:
    """Print version."""
    from notekeep import __version__
    print(f"notekeep {__version__}")


def configure_logging(config: dict) -> None:
    """Configure root logging from the [logging] config section."""
    import logging

    level_name = str(config.get("logging", {}).get("level", "WARNING")).upper()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, level_name, logging.WARNING),
    )


def open_store(load: bool = True):
    """
    Build the configured store.

    Loads persisted notes unless `load` is False; mutating commands load
    inside `store.locked()` instead.
    """
    from notekeep.backends import open_backend
    from notekeep.config import ensure_dirs, load_config
    from notekeep.store import NoteStore

    config = load_config()
    configure_logging(config)

    if config["storage"]["backend"] != "memory":
        ensure_dirs(config)

    store = NoteStore(open_backend(config), key=config["storage"]["key"])
    if load:
        store.load()
    return store


def resolve_ref(store, ref: str) -> int:
    """
    Resolve a note reference to its position in the store.

    Digits are a 1-based list position when one exists; otherwise the
    reference is matched as an id prefix.
    """
    notes = store.notes

    if ref.isdigit() and 1 <= int(ref) <= len(notes):
        return int(ref) - 1

    prefix = ref.replace("-", "").lower()
    matches = [i for i, note in enumerate(notes) if note.id.hex.startswith(prefix)]

    if not prefix or not matches:
        if ref.isdigit():
            raise ValueError(f"No note at position {int(ref)}")
        raise ValueError(f"Note not found: {ref}")
    if len(matches) > 1:
        raise ValueError(f"Ambiguous id prefix: {ref} ({len(matches)} notes)")
    return matches[0]


def _require_text(title: str, content: str) -> None:
    """Reject empty title or content before it reaches the store."""
    if not title.strip():
        raise ValueError("Title must not be empty")
    if not content.strip():
        raise ValueError("Content must not be empty")


def cmd_add(args: list[str]) -> int:
    """Add a note."""
    from notekeep.display import short_id

    if len(args) < 2:
        print("Usage: notekeep add <title> <content>", file=sys.stderr)
        return 1

    title = args[0]
    content = " ".join(args[1:])

    try:
        _require_text(title, content)
        store = open_store(load=False)
        with store.locked():
            note = store.add(title, content)
        print(short_id(note))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_list() -> int:
    """List notes."""
    from notekeep.display import format_note_list

    try:
        store = open_store()
        print(format_note_list(store.notes))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_show(args: list[str]) -> int:
    """Show a single note."""
    from notekeep.display import format_note_detail

    if not args:
        print("Usage: notekeep show <ref>", file=sys.stderr)
        return 1

    try:
        store = open_store()
        index = resolve_ref(store, args[0])
        print(format_note_detail(store.notes[index]))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_edit(args: list[str]) -> int:
    """Replace a note's title and content."""
    from notekeep.display import short_id

    if len(args) < 3:
        print("Usage: notekeep edit <ref> <title> <content>", file=sys.stderr)
        return 1

    title = args[1]
    content = " ".join(args[2:])

    try:
        _require_text(title, content)
        store = open_store(load=False)
        with store.locked():
            note = store.notes[resolve_ref(store, args[0])]
            store.edit(note.id, title, content)
        print(f"Edited: {short_id(note)}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_toggle(args: list[str]) -> int:
    """Flip a note's completion flag."""
    if not args:
        print("Usage: notekeep toggle <ref>", file=sys.stderr)
        return 1

    try:
        store = open_store(load=False)
        with store.locked():
            note = store.notes[resolve_ref(store, args[0])]
            store.toggle_completion(note.id)
        state = "Uncompleted" if note.is_completed else "Completed"
        print(f"{state}: {note.title}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_rm(args: list[str]) -> int:
    """Delete notes."""
    if not args:
        print("Usage: notekeep rm <ref> [<ref>...]", file=sys.stderr)
        return 1

    try:
        store = open_store(load=False)
        with store.locked():
            indices = {resolve_ref(store, ref) for ref in args}
            store.remove(indices)
        print(f"Deleted {len(indices)} note{'s' if len(indices) != 1 else ''}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_mv(args: list[str]) -> int:
    """Move notes to a new position."""
    if "--to" not in args:
        print("Usage: notekeep mv <ref> [<ref>...] --to <n>", file=sys.stderr)
        return 1

    split = args.index("--to")
    refs, rest = args[:split], args[split + 1:]
    if not refs or len(rest) != 1 or not rest[0].isdigit():
        print("Usage: notekeep mv <ref> [<ref>...] --to <n>", file=sys.stderr)
        return 1

    try:
        store = open_store(load=False)
        with store.locked():
            indices = {resolve_ref(store, ref) for ref in refs}
            # 1-based position; len + 1 moves to the end
            store.move(indices, int(rest[0]) - 1)
        print(f"Moved {len(indices)} note{'s' if len(indices) != 1 else ''}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_status() -> int:
    """Show health check."""
    from notekeep.health import format_health_report, run_health_check

    checks = run_health_check()
    print(format_health_report(checks))
    return 1 if any(status == "✗" for status, _ in checks.values()) else 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = sys.argv[1:] if argv is None else argv

    if not args:
        return cmd_list()

    first_arg = args[0]

    if first_arg in ("--help", "-h", "help"):
        print_help()
        return 0

    if first_arg in ("--version", "-v", "version"):
        print_version()
        return 0

    # Subcommands (lazy import to keep startup fast)
    if first_arg == "add":
        return cmd_add(args[1:])

    if first_arg in ("list", "ls"):
        return cmd_list()

    if first_arg == "show":
        return cmd_show(args[1:])

    if first_arg == "edit":
        return cmd_edit(args[1:])

    if first_arg == "toggle":
        return cmd_toggle(args[1:])

    if first_arg == "rm":
        return cmd_rm(args[1:])

    if first_arg == "mv":
        return cmd_mv(args[1:])

    if first_arg == "status":
        return cmd_status()

    print(f"Error: Unknown command: {first_arg}", file=sys.stderr)
    print("Run `notekeep --help` for usage.", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
