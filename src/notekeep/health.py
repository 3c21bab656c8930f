"""
Health check module for Notekeep.

Reports status of config, data directory and stored notes.
"""

from typing import Any

from notekeep.config import get_config_path, get_data_dir, load_config


def check_config() -> tuple[str, str]:
    """Check config file status."""
    config_path = get_config_path()
    if not config_path.exists():
        return "-", "Not found (using defaults)"

    try:
        load_config()
        return "✓", f"OK ({config_path})"
    except Exception as e:
        return "✗", f"Error: {e}"


def check_data_dir(config: dict[str, Any] | None = None) -> tuple[str, str]:
    """Check the data directory named in config."""
    home = get_data_dir(config)
    if not home.exists():
        return "!", f"Missing ({home})"
    if not home.is_dir():
        return "✗", f"Not a directory ({home})"
    return "✓", f"OK ({home})"


def check_notes(config: dict[str, Any]) -> tuple[str, str]:
    """Check that the stored notes blob can be read and decoded."""
    from notekeep.backends import open_backend
    from notekeep.models import decode_notes

    storage = config.get("storage", {})
    backend_name = storage.get("backend", "file")

    try:
        backend = open_backend(config)
        data = backend.get(storage.get("key", "notes"))
    except Exception as e:
        return "✗", f"Error: {e}"

    if data is None:
        return "✓", f"Empty ({backend_name})"

    try:
        notes = decode_notes(data)
    except Exception as e:
        return "✗", f"Unreadable ({backend_name}): {e}"

    done = sum(1 for note in notes if note.is_completed)
    return "✓", f"OK ({len(notes)} notes, {done} completed, {backend_name})"


def run_health_check(config: dict[str, Any] | None = None) -> dict[str, tuple[str, str]]:
    """Run all health checks."""
    checks = {"Config": check_config()}

    if config is None:
        try:
            config = load_config()
        except Exception as e:
            checks["Notes"] = ("✗", f"Error: {e}")
            return checks

    checks["Data Dir"] = check_data_dir(config)
    checks["Notes"] = check_notes(config)
    return checks


def format_health_report(checks: dict[str, tuple[str, str]]) -> str:
    """Format health check results."""
    lines = ["Notekeep Health Check", "-" * 40]

    for name, (status, message) in checks.items():
        lines.append(f"{status} {name}: {message}")

    return "\n".join(lines)
