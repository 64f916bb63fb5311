"""Settings persistence port."""

from __future__ import annotations

from abc import ABC, abstractmethod

from photoframe.core.models.settings import Settings


class SettingsStorage(ABC):
    """Loads and saves the whole settings blob.

    Implementations never raise on :meth:`load`; an unreadable blob yields
    default :class:`Settings`.
    """

    @abstractmethod
    def load(self) -> Settings:
        """Return the persisted settings, or defaults."""

    @abstractmethod
    def save(self, settings: Settings) -> None:
        """Replace the persisted blob with *settings*."""
