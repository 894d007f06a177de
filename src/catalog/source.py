"""Document sources: where raw document text comes from.

The parser never touches storage itself. A host hands it a
:class:`DocumentSource`; :class:`FileSystemDocumentSource` is the stock
implementation for a directory of text files.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict

from utils.logging import get_logger


LOGGER = get_logger(__name__)
DEFAULT_EXTENSIONS = (".md",)
DEFAULT_EXCLUDE_DIRS = (".git", ".obsidian", ".trash", "__pycache__")


def _absolute(path: Path) -> Path:
    return Path(str(path).replace("\\", "/")).expanduser().resolve()


class DocumentHandle(BaseModel):
    """Opaque reference to one document inside a source."""

    model_config = ConfigDict(frozen=True)

    location: str


@runtime_checkable
class DocumentSource(Protocol):
    """Capability consumed by :func:`catalog.parser.load_catalog`."""

    def list(self, path_prefix: str) -> Sequence[DocumentHandle]:
        ...

    def read(self, handle: DocumentHandle) -> str:
        ...


@runtime_checkable
class SubscribableDocumentSource(DocumentSource, Protocol):
    """A source that can also push change notifications for incremental reload."""

    def subscribe(self, path_prefix: str, on_change: Callable[[DocumentHandle], None]) -> Callable[[], None]:
        ...


def _normalise_extension(ext: str) -> str:
    ext = ext.strip().lower()
    if not ext:
        return ext
    return ext if ext.startswith(".") else f".{ext}"


class FileSystemDocumentSource:
    """List and read text documents below a root directory.

    Locations are POSIX-style paths relative to ``root`` so that records built
    from them do not depend on where the library is mounted.
    """

    def __init__(
        self,
        root: Path,
        extensions: Optional[Iterable[str]] = DEFAULT_EXTENSIONS,
        exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
        follow_symlinks: bool = False,
        encoding: str = "utf-8",
    ) -> None:
        self.root = _absolute(Path(root))
        self.extensions = (
            tuple(sorted({_normalise_extension(ext) for ext in extensions})) if extensions else None
        )
        self.exclude_dirs = {name.lower() for name in exclude_dirs}
        self.follow_symlinks = follow_symlinks
        self.encoding = encoding

    def _resolve(self, location: str) -> Path:
        path = _absolute(self.root / location)
        if path != self.root and self.root not in path.parents:
            raise ValueError(f"{location!r} points outside {self.root}")
        return path

    def list(self, path_prefix: str = "") -> List[DocumentHandle]:
        base = self._resolve(path_prefix)
        if not base.exists():
            raise FileNotFoundError(f"Document folder {base} does not exist")

        def on_walk_error(err: OSError) -> None:
            LOGGER.warning("Error walking directory %s: %s", err.filename, err)

        handles: List[DocumentHandle] = []
        for dirpath, dirnames, filenames in os.walk(
            base, followlinks=self.follow_symlinks, onerror=on_walk_error
        ):
            dirnames[:] = sorted(d for d in dirnames if d.lower() not in self.exclude_dirs)
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if self.extensions and path.suffix.lower() not in self.extensions:
                    continue
                handles.append(DocumentHandle(location=path.relative_to(self.root).as_posix()))
        LOGGER.debug("Found %d documents under %s", len(handles), base)
        return handles

    def read(self, handle: DocumentHandle) -> str:
        return self._resolve(handle.location).read_text(encoding=self.encoding)
