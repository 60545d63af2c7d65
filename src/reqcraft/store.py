"""Hot-swappable holder for the currently loaded configuration.

A :class:`ConfigStore` owns one root document path. Each successful
:meth:`ConfigStore.load` or :meth:`ConfigStore.reload` resolves a fresh
:class:`~reqcraft.models.Document` and installs it as a new
:class:`ConfigSnapshot`. Installation is a single attribute assignment made
under a writer lock, so readers calling :meth:`ConfigStore.current` never
need a lock and always see a complete snapshot.

A reload that fails raises and leaves the previous snapshot in place, so a
serving layer keeps answering from the last good configuration while the
user fixes a syntax error.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from reqcraft.imports import ImportOutcome, resolve_document
from reqcraft.models import ApiEndpoint, CategoryInfo, Document, ProjectConfig
from reqcraft.projection import to_categories, to_endpoints

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSnapshot:
    """One installed configuration.

    The document must not be mutated once installed; projections are
    recomputed from it on every call.
    """

    version: int
    document: Document
    outcomes: tuple[ImportOutcome, ...] = ()
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def endpoints(self) -> list[ApiEndpoint]:
        return to_endpoints(self.document)

    def categories(self) -> list[CategoryInfo]:
        return to_categories(self.document)


class ConfigStore:
    """Atomically replaceable configuration for one root document.

    Args:
        root_path: The root ``.rqc`` file.
        settings: Project settings passed to the import resolver.
    """

    def __init__(self, root_path: Path | str, settings: Optional[ProjectConfig] = None) -> None:
        self.root_path = Path(root_path)
        self.settings = settings or ProjectConfig()
        self._lock = threading.Lock()
        self._snapshot: Optional[ConfigSnapshot] = None

    def current(self) -> Optional[ConfigSnapshot]:
        """Return the installed snapshot, or ``None`` before the first load."""
        return self._snapshot

    def load(self) -> ConfigSnapshot:
        """Resolve the root document and install the result.

        Raises:
            DocumentReadError: If the root document cannot be read.
            DslParseError: If the root document has a syntax error.
        """
        with self._lock:
            result = resolve_document(self.root_path, settings=self.settings)
            previous = self._snapshot
            snapshot = ConfigSnapshot(
                version=previous.version + 1 if previous else 1,
                document=result.document,
                outcomes=result.outcomes,
            )
            self._snapshot = snapshot

        logger.info("Installed configuration v%d from %s", snapshot.version, self.root_path)
        return snapshot

    def reload(self) -> ConfigSnapshot:
        """Re-resolve after a change; on failure the old snapshot stays installed."""
        try:
            return self.load()
        except Exception:
            logger.warning("Reload of %s failed; keeping previous configuration", self.root_path)
            raise
