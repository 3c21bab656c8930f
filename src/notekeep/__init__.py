"""
Notekeep: local-first note keeper.

A small note store that provides:
- Ordered in-memory notes with a completion flag
- Full-snapshot persistence to a pluggable blob store
- Change notifications for whatever is rendering the notes
"""

__version__ = "0.1.0"
