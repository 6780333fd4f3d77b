"""
In-session edit history for ShadowLift.

Keeps an undo/redo stack of ToneSettings for one editing session. Nothing is
written to disk; the history lives as long as the EditHistory object.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import get_config_value, get_preset
from .tone.models import ToneSettings, DEFAULT_SETTINGS


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """A committed settings state."""
    settings: ToneSettings
    timestamp: str
    description: str = ""


class EditHistory:
    """
    Undo/redo stack for tone settings.

    `state` is the live value (slider drags update it without committing);
    `commit` pushes it onto the stack when it differs from the current entry.
    Committing after an undo discards the redo branch.
    """

    def __init__(self, initial: ToneSettings = DEFAULT_SETTINGS, max_entries: int = 100):
        """
        Initialize history.

        Args:
            initial: Starting settings
            max_entries: Maximum number of committed entries to retain
        """
        self.max_entries = max_entries
        self.state = initial
        self.entries: List[HistoryEntry] = [self._entry(initial, "Session start")]
        self.index = 0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'EditHistory':
        """History starting at the configured default preset"""
        return cls(initial=get_preset(config, 'default'),
                   max_entries=int(get_config_value(config, 'history.max_entries', 100)))

    @staticmethod
    def _entry(settings: ToneSettings, description: str) -> HistoryEntry:
        return HistoryEntry(settings=settings, timestamp=datetime.now().isoformat(),
                            description=description)

    @property
    def current(self) -> ToneSettings:
        """Settings of the current committed entry"""
        return self.entries[self.index].settings

    def set_state(self, settings: ToneSettings) -> None:
        """Update the live state without committing"""
        self.state = settings

    def _push(self, settings: ToneSettings, description: str) -> None:
        self.entries = self.entries[:self.index + 1]
        self.entries.append(self._entry(settings, description))

        if len(self.entries) > self.max_entries:
            removed = len(self.entries) - self.max_entries
            self.entries = self.entries[removed:]
            logger.debug(f"Trimmed {removed} old entries from edit history")

        self.index = len(self.entries) - 1

    def commit(self, settings: Optional[ToneSettings] = None, description: str = "") -> bool:
        """
        Commit settings (default: the live state).

        Returns:
            True if a new entry was pushed, False if it matched the current entry
        """
        settings = self.state if settings is None else settings
        self.state = settings
        if settings == self.current:
            return False
        self._push(settings, description)
        logger.debug(f"Committed settings: {settings.to_dict()}")
        return True

    def can_undo(self) -> bool:
        return self.index > 0

    def can_redo(self) -> bool:
        return self.index < len(self.entries) - 1

    def undo(self) -> Optional[ToneSettings]:
        """Step back; returns the restored settings or None"""
        if not self.can_undo():
            logger.debug("Cannot undo: at oldest entry")
            return None
        self.index -= 1
        self.state = self.current
        return self.state

    def redo(self) -> Optional[ToneSettings]:
        """Step forward; returns the restored settings or None"""
        if not self.can_redo():
            logger.debug("Cannot redo: at newest entry")
            return None
        self.index += 1
        self.state = self.current
        return self.state

    def reset(self, settings: ToneSettings, description: str = "Reset") -> ToneSettings:
        """Jump to settings (e.g. a preset) as a new, undoable entry"""
        self.state = settings
        self._push(settings, description)
        return settings
