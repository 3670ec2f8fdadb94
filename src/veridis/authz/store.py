"""Durable JSON store for users and invite codes."""

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from ..errors import PersistenceFailure
from ..models.authz import AuthzDocument

logger = logging.getLogger(__name__)


class AuthzStore:
    """Flat-file authorization store.

    The document is loaded once per process and written back in full after
    every mutation, via a temp file renamed over the real path so readers
    never observe a partial write.
    """

    def __init__(self, path: Path):
        """Initialize the store without touching disk.

        Args:
            path: Location of the JSON document
        """
        self.path = Path(path)
        self._document = AuthzDocument()
        self._loaded = False
        self._lock = threading.RLock()

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def document(self) -> AuthzDocument:
        """The live document. Callers must not mutate it outside transaction()."""
        return self._document

    def load(self) -> None:
        """Load the document from disk, once.

        A missing or unparsable file is replaced by an empty store which is
        persisted immediately. Later calls are no-ops.

        Raises:
            PersistenceFailure: If the file cannot be read or the empty
                store cannot be written
        """
        with self._lock:
            if self._loaded:
                return

            document = self._read()
            if document is None:
                document = AuthzDocument()
                self._write(document)

            self._document = document
            self._loaded = True
            logger.info(
                f"Loaded authz store {self.path}: "
                f"{len(document.users)} user(s), {len(document.invite_codes)} invite code(s)"
            )

    def persist(self, document: Optional[AuthzDocument] = None) -> None:
        """Write the document atomically.

        Args:
            document: Document to write; defaults to the live one

        Raises:
            PersistenceFailure: If writing or renaming fails
        """
        with self._lock:
            self._write(document if document is not None else self._document)

    @contextmanager
    def transaction(self) -> Iterator[AuthzDocument]:
        """Yield a working copy of the document and commit it on success.

        The copy is persisted first and only then becomes the live document.
        If the block raises or the write fails, the live document is unchanged.
        """
        with self._lock:
            self.load()
            working = self._document.model_copy(deep=True)
            yield working
            self._write(working)
            self._document = working

    def _read(self) -> Optional[AuthzDocument]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            logger.info(f"Authz store {self.path} does not exist, creating empty store")
            return None
        except OSError as e:
            raise PersistenceFailure(f"Failed to read authz store {self.path}: {e}") from e

        try:
            return AuthzDocument.model_validate(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Authz store {self.path} is unreadable ({e}), resetting to empty store")
            return None

    def _write(self, document: AuthzDocument) -> None:
        data = document.model_dump(mode="json", by_alias=True, exclude_none=True)
        temp_file = self.temp_path
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_file.replace(self.path)
            logger.debug(f"Saved authz store to {self.path}")
        except OSError as e:
            logger.error(f"Failed to save authz store to {self.path}: {e}")
            temp_file.unlink(missing_ok=True)
            raise PersistenceFailure(f"Failed to save authz store {self.path}: {e}") from e
