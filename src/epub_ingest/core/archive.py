"""Random access to entries of a ZIP-structured EPUB container."""

import io
import logging
import zipfile
from pathlib import Path

from epub_ingest.errors import InvalidArchive, ResourceNotFound

log = logging.getLogger(__name__)


class Archive:
    """Read-only view of an EPUB archive, addressed by internal path."""

    def __init__(self, source: Path | str | bytes, name: str | None = None):
        if isinstance(source, bytes):
            self.name = name or "<memory>"
            fileobj: io.BytesIO | str = io.BytesIO(source)
        else:
            self.name = name or str(source)
            fileobj = str(source)

        try:
            self._zip = zipfile.ZipFile(fileobj, "r")
        except (zipfile.BadZipFile, OSError) as e:
            raise InvalidArchive(f"not a readable ZIP archive: {e}").with_archive(self.name)

        self._entries = {info.filename for info in self._zip.infolist() if not info.is_dir()}
        log.debug("Opened %s with %d entries", self.name, len(self._entries))

    def __enter__(self) -> "Archive":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    def has_entry(self, path: str) -> bool:
        """Whether the entry exists; never raises."""
        return path in self._entries

    def read_bytes(self, path: str) -> bytes:
        if not self.has_entry(path):
            raise ResourceNotFound(path)
        return self._zip.read(path)

    def read_text(self, path: str) -> str:
        """Read an entry as UTF-8, substituting undecodable bytes."""
        data = self.read_bytes(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            log.warning("Entry %s is not valid UTF-8, replacing bad bytes", path)
            return data.decode("utf-8", errors="replace")
