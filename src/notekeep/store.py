"""
Note store for Notekeep.

Owns the ordered in-memory note collection and keeps the persisted blob
in step with it: every mutation is followed by a full save.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator
from uuid import UUID

from pydantic import ValidationError

from notekeep.backends import BlobBackend, validate_key
from notekeep.errors import StorageError
from notekeep.models import Note, decode_notes, encode_notes

logger = logging.getLogger(__name__)

DEFAULT_KEY = "notes"

Subscriber = Callable[[tuple[Note, ...]], None]


class NoteStore:
    """In-memory ordered notes with load/save against a blob backend."""

    def __init__(self, backend: BlobBackend, key: str = DEFAULT_KEY):
        self.backend = backend
        self.key = validate_key(key)
        self._notes: list[Note] = []
        self._subscribers: list[Subscriber] = []
        # Serializes mutate-then-save so concurrent writers never interleave
        self._lock = threading.RLock()

    # ─────────────────────────────────────────────
    #  Reads
    # ─────────────────────────────────────────────

    @property
    def notes(self) -> tuple[Note, ...]:
        """Snapshot of the collection, in order."""
        with self._lock:
            return tuple(self._notes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._notes)

    def __iter__(self) -> Iterator[Note]:
        return iter(self.notes)

    def get(self, note_id: UUID) -> Note | None:
        """Get a single note by ID."""
        with self._lock:
            index = self.index_of(note_id)
            if index is None:
                return None
            return self._notes[index]

    def index_of(self, note_id: UUID) -> int | None:
        """Position of the note with this ID, or None."""
        with self._lock:
            for index, note in enumerate(self._notes):
                if note.id == note_id:
                    return index
        return None

    # ─────────────────────────────────────────────
    #  Mutations
    # ─────────────────────────────────────────────

    def add(self, title: str, content: str) -> Note:
        """Append a new, incomplete note. Returns it."""
        note = Note(title=title, content=content)

        with self._lock:
            self._notes.append(note)
            self.save()
            self._notify()

        return note

    def edit(self, note_id: UUID, title: str, content: str) -> bool:
        """
        Replace title and content of a note, keeping its id and completion.

        Unknown IDs are not an error: the collection is left as is and
        False is returned.
        """
        with self._lock:
            index = self.index_of(note_id)
            if index is not None:
                current = self._notes[index]
                self._notes[index] = Note(
                    id=current.id,
                    title=title,
                    content=content,
                    is_completed=current.is_completed,
                )
            self.save()
            if index is not None:
                self._notify()

        return index is not None

    def toggle_completion(self, note_id: UUID) -> bool:
        """Flip a note's completion flag. Returns False if the ID is unknown."""
        with self._lock:
            index = self.index_of(note_id)
            if index is not None:
                current = self._notes[index]
                self._notes[index] = current.model_copy(
                    update={"is_completed": not current.is_completed}
                )
            self.save()
            if index is not None:
                self._notify()

        return index is not None

    def remove(self, indices: Iterable[int]) -> None:
        """
        Remove the notes at the given positions.

        All positions are checked before anything is removed; an
        out-of-range position raises IndexError and leaves the store as is.
        """
        with self._lock:
            positions = self._check_positions(indices)
            self._notes = [
                note for index, note in enumerate(self._notes)
                if index not in positions
            ]
            self.save()
            self._notify()

    def move(self, indices: Iterable[int], destination: int) -> None:
        """
        Move the notes at the given positions before position `destination`.

        `destination` refers to the collection before the move and may equal
        its length (move to the end). Moved notes keep their relative order.
        """
        with self._lock:
            positions = self._check_positions(indices)
            if not 0 <= destination <= len(self._notes):
                raise IndexError(f"Destination out of range: {destination}")

            moving = [self._notes[i] for i in sorted(positions)]
            staying = [n for i, n in enumerate(self._notes) if i not in positions]
            offset = destination - sum(1 for i in positions if i < destination)
            self._notes = staying[:offset] + moving + staying[offset:]

            self.save()
            self._notify()

    def _check_positions(self, indices: Iterable[int]) -> set[int]:
        positions = set(indices)
        for index in positions:
            if not 0 <= index < len(self._notes):
                raise IndexError(f"Note position out of range: {index}")
        return positions

    # ─────────────────────────────────────────────
    #  Persistence
    # ─────────────────────────────────────────────

    def load(self) -> bool:
        """
        Replace the collection with the persisted notes.

        A missing blob leaves the collection untouched. Unreadable or
        undecodable data is logged and also leaves it untouched.
        Returns True if the collection was replaced.
        """
        with self._lock:
            try:
                data = self.backend.get(self.key)
            except StorageError as e:
                logger.error(f"Failed to load notes: {e}")
                return False

            if data is None:
                return False

            try:
                notes = decode_notes(data)
            except (ValidationError, ValueError) as e:
                logger.error(f"Failed to load notes: {e}")
                return False

            self._notes = notes
            logger.debug(f"Loaded {len(notes)} notes from {self.key!r}")
            self._notify()
            return True

    @contextmanager
    def locked(self) -> Iterator["NoteStore"]:
        """
        Hold the backend lock for a whole reload-mutate-save cycle.

        Reloads on entry so mutations apply to the latest persisted notes;
        other writers of the same key (threads, processes, other stores)
        wait until the block exits.
        """
        with self._lock, self.backend.lock(self.key):
            self.load()
            yield self

    def save(self) -> bool:
        """
        Write the full collection to the backend.

        Encoding or write failures are logged; persisted state stays
        whatever it was before the call. Returns True on success.
        """
        with self._lock:
            try:
                data = encode_notes(self._notes)
            except (ValueError, TypeError) as e:
                logger.error(f"Failed to save notes: {e}")
                return False

            try:
                self.backend.set(self.key, data)
            except StorageError as e:
                logger.error(f"Failed to save notes: {e}")
                return False

            return True

    # ─────────────────────────────────────────────
    #  Change notification
    # ─────────────────────────────────────────────

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call `callback` with the new snapshot after every change.

        Returns a function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = tuple(self._notes)
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception(f"Note subscriber {callback!r} failed")
