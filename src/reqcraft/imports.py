"""Resolve ``import`` statements and merge every reachable document into one.

:func:`resolve_document` parses a root ``.rqc`` file, then follows its
imports depth-first:

* ``http://`` / ``https://`` references are fetched and converted by the
  OpenAPI adapter;
* ``./`` and ``../`` references resolve against the importing file's
  directory, every other local reference against the root document's
  directory;
* ``.rqc`` files recurse into the same algorithm, ``.json``/``.yaml``/``.yml``
  files go through the OpenAPI adapter, other extensions are skipped.

A visited set of canonical paths makes cycles terminate: a file that was
already parsed contributes an empty document the second time.

Every import produces an :class:`ImportOutcome`. Failures of the root
document are fatal and raised; failures of an import are logged, recorded as
``SKIPPED`` and the remaining imports still load, so one broken or unreachable
import only removes its own contribution.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reqcraft.dsl.parser import parse_file
from reqcraft.exceptions import DocumentReadError, DslParseError, OpenAPIError
from reqcraft.models import Document, ProjectConfig
from reqcraft.openapi.adapter import parse_openapi_file, parse_openapi_url
from reqcraft.openapi.loader import is_url

logger = logging.getLogger(__name__)

_OPENAPI_SUFFIXES = frozenset({".json", ".yaml", ".yml"})


class ImportStatus(str, enum.Enum):
    """How one resolution step ended."""

    LOADED = "loaded"
    SKIPPED = "skipped"
    FATAL = "fatal"


class ImportReason(str, enum.Enum):
    """Why a resolution step ended the way it did."""

    OK = "ok"
    IO = "io"
    SYNTAX = "syntax"
    FETCH = "fetch"
    INVALID_OPENAPI = "invalid_openapi"
    NOT_FOUND = "not_found"
    UNSUPPORTED = "unsupported"
    CYCLE = "cycle"
    DISABLED = "disabled"


@dataclass(frozen=True)
class ImportOutcome:
    """Result of loading the root document or one import reference.

    Attributes:
        source: The import reference as written, or the root path.
        status: ``LOADED``, ``SKIPPED`` (recoverable, with a diagnostic) or
            ``FATAL`` (root document only).
        reason: The error class behind the status.
        message: Human-readable diagnostic; empty for clean loads.
        importer: Path of the document containing the import, ``None`` for
            the root.
    """

    source: str
    status: ImportStatus
    reason: ImportReason = ImportReason.OK
    message: str = ""
    importer: Optional[str] = None


@dataclass(frozen=True)
class ResolutionResult:
    """A fully merged document plus the outcome of every resolution step."""

    document: Document
    outcomes: tuple[ImportOutcome, ...]

    @property
    def skipped(self) -> list[ImportOutcome]:
        """Outcomes of imports that did not contribute to the document."""
        return [o for o in self.outcomes if o.status is ImportStatus.SKIPPED]


def merge_documents(target: Document, source: Document) -> None:
    """Fold *source* into *target* in place.

    Settings are first-document-wins: *target* adopts the source's config
    block only when it has none, and adopts the source's base URLs only when
    its own list is empty. Every endpoint and category list is concatenated
    in encounter order without deduplication.
    """
    if target.config is None:
        target.config = source.config
    elif source.config is not None and not target.config.base_urls:
        target.config.base_urls = list(source.config.base_urls)

    target.apis.extend(source.apis)
    target.ws_apis.extend(source.ws_apis)
    target.socketio_apis.extend(source.socketio_apis)
    target.sse_apis.extend(source.sse_apis)
    target.categories.extend(source.categories)


def resolve_import_path(reference: str, base_dir: Path, importer: Path) -> Path:
    """Map a local import reference to a filesystem path.

    Args:
        reference: The path as written in the ``import`` statement.
        base_dir: Directory of the root document.
        importer: The file containing the import.
    """
    if reference.startswith(("./", "../")):
        return importer.parent / reference
    return base_dir / reference


def _is_rqc(path: Path) -> bool:
    return path.suffix.lower() == ".rqc" or path.name == ".rqc"


class ImportResolver:
    """Stateful resolver for one root document.

    Holds the visited set and the outcome log, so create a new instance for
    every resolution.

    Args:
        base_dir: Directory that non-relative local imports resolve against.
        fetch_timeout: Network timeout for remote OpenAPI imports.
        remote_imports: When ``False``, URL imports are skipped.
    """

    def __init__(
        self,
        base_dir: Path,
        fetch_timeout: float = 30.0,
        remote_imports: bool = True,
    ) -> None:
        self.base_dir = base_dir
        self.fetch_timeout = fetch_timeout
        self.remote_imports = remote_imports
        self._visited: set[Path] = set()
        self._outcomes: list[ImportOutcome] = []

    @property
    def outcomes(self) -> tuple[ImportOutcome, ...]:
        return tuple(self._outcomes)

    def resolve(self, root_path: Path) -> Document:
        """Parse *root_path* and merge everything it imports.

        Raises:
            DocumentReadError: If the root document cannot be read.
            DslParseError: If the root document has a syntax error.
        """
        try:
            document = self._resolve_file(root_path)
        except (DocumentReadError, DslParseError) as exc:
            reason = ImportReason.IO if isinstance(exc, DocumentReadError) else ImportReason.SYNTAX
            self._record(str(root_path), ImportStatus.FATAL, reason, str(exc))
            raise
        self._record(str(root_path), ImportStatus.LOADED)
        return document

    # ------------------------------------------------------------------ #
    # Resolution steps
    # ------------------------------------------------------------------ #

    def _resolve_file(self, path: Path) -> Document:
        self._visited.add(path.resolve())
        document = parse_file(path)

        references, document.imports = document.imports, []
        for reference in references:
            imported = self._resolve_import(reference, path)
            if imported is not None:
                merge_documents(document, imported)

        return document

    def _resolve_import(self, reference: str, importer: Path) -> Optional[Document]:
        if is_url(reference):
            return self._resolve_remote(reference, importer)

        path = resolve_import_path(reference, self.base_dir, importer)
        if not path.exists():
            return self._skip(reference, importer, ImportReason.NOT_FOUND, f"Import not found: {path}")

        if _is_rqc(path):
            return self._resolve_local_rqc(reference, path, importer)

        if path.suffix.lower() in _OPENAPI_SUFFIXES:
            try:
                document = parse_openapi_file(path)
            except OpenAPIError as exc:
                return self._skip(reference, importer, ImportReason.INVALID_OPENAPI, str(exc))
            return self._load(reference, importer, document)

        return self._skip(
            reference, importer, ImportReason.UNSUPPORTED, f"Unsupported import format: {reference}"
        )

    def _resolve_remote(self, url: str, importer: Path) -> Optional[Document]:
        if not self.remote_imports:
            return self._skip(url, importer, ImportReason.DISABLED, "Remote imports are disabled")
        try:
            document = parse_openapi_url(url, timeout=self.fetch_timeout)
        except OpenAPIError as exc:
            return self._skip(url, importer, ImportReason.FETCH, str(exc))
        return self._load(url, importer, document)

    def _resolve_local_rqc(self, reference: str, path: Path, importer: Path) -> Optional[Document]:
        if path.resolve() in self._visited:
            logger.info("Skipping already imported file: %s", path)
            self._record(
                reference,
                ImportStatus.SKIPPED,
                ImportReason.CYCLE,
                f"Already imported: {path}",
                importer,
            )
            return Document()

        try:
            document = self._resolve_file(path)
        except DocumentReadError as exc:
            return self._skip(reference, importer, ImportReason.IO, str(exc))
        except DslParseError as exc:
            return self._skip(reference, importer, ImportReason.SYNTAX, f"Parse error in {path}: {exc}")
        return self._load(reference, importer, document)

    # ------------------------------------------------------------------ #
    # Outcome bookkeeping
    # ------------------------------------------------------------------ #

    def _record(
        self,
        source: str,
        status: ImportStatus,
        reason: ImportReason = ImportReason.OK,
        message: str = "",
        importer: Optional[Path] = None,
    ) -> None:
        self._outcomes.append(
            ImportOutcome(
                source=source,
                status=status,
                reason=reason,
                message=message,
                importer=str(importer) if importer is not None else None,
            )
        )

    def _load(self, reference: str, importer: Path, document: Document) -> Document:
        logger.info("Imported %s", reference)
        self._record(reference, ImportStatus.LOADED, importer=importer)
        return document

    def _skip(self, reference: str, importer: Path, reason: ImportReason, message: str) -> None:
        logger.warning("Skipping import %s (%s): %s", reference, reason.value, message)
        self._record(reference, ImportStatus.SKIPPED, reason, message, importer)
        return None


def resolve_document(
    root_path: Path | str,
    base_dir: Optional[Path | str] = None,
    *,
    settings: Optional[ProjectConfig] = None,
) -> ResolutionResult:
    """Resolve *root_path* and everything it imports into one document.

    Args:
        root_path: The root ``.rqc`` file.
        base_dir: Directory for non-relative local imports; defaults to the
            root file's directory.
        settings: Project settings supplying the fetch timeout and the
            remote-import switch.

    Returns:
        The merged document (with an empty ``imports`` list) and the outcome
        of every step.

    Raises:
        DocumentReadError: If the root document cannot be read.
        DslParseError: If the root document has a syntax error.
    """
    settings = settings or ProjectConfig()
    root = Path(root_path)
    resolver = ImportResolver(
        Path(base_dir) if base_dir is not None else root.parent,
        fetch_timeout=settings.fetch_timeout,
        remote_imports=settings.remote_imports,
    )
    document = resolver.resolve(root)
    return ResolutionResult(document=document, outcomes=resolver.outcomes)
