"""
Key-path document storage.

Documents are addressed by slash-separated paths such as
``users/<uid>/activity/2026-10-19``. Writes are merge-style (only the
named fields change); session records go to append-only collections.

JsonDocumentStore keeps one JSON file per document and one JSONL file
per collection under a root directory.
"""

import copy
import json
import os
import uuid
from pathlib import Path
from typing import Any, Protocol

from ..core.errors import PersistenceUnavailableError
from .serializers import ValidationError


class DocumentStore(Protocol):
    """Contract the engine needs from a document database."""

    def get(self, path: str) -> dict[str, Any] | None:
        """Return the document at path, or None if it does not exist."""
        ...

    def set(self, path: str, fields: dict[str, Any], merge: bool = True) -> None:
        """Write fields to the document; merge keeps fields not named."""
        ...

    def append(self, collection_path: str, document: dict[str, Any]) -> str:
        """Append a document to a collection and return its id."""
        ...

    def list(self, collection_path: str) -> list[dict[str, Any]]:
        """Return every document of a collection in append order."""
        ...


def split_path(path: str) -> list[str]:
    """
    Split and validate a key path.

    Raises:
        ValidationError: If the path is empty or has empty/relative segments
    """
    parts = path.strip("/").split("/")
    if not path.strip("/") or any(p in ("", ".", "..") for p in parts):
        raise ValidationError(f"Invalid document path: {path!r}")
    return parts


class JsonDocumentStore:
    """
    Document store backed by JSON files.

    Layout under ``root``:
    - ``<path>.json`` per document
    - ``<collection_path>.jsonl`` per append-only collection, one document per line
    """

    def __init__(self, root: str | Path):
        """
        Initialize the store.

        Args:
            root: Directory holding all documents (created on first write)
        """
        self.root = Path(root)

    def _file(self, path: str, suffix: str) -> Path:
        # user ids may contain dots, so append the suffix instead of replacing one
        target = self.root.joinpath(*split_path(path))
        return target.with_name(target.name + suffix)

    def _doc_file(self, path: str) -> Path:
        return self._file(path, ".json")

    def _collection_file(self, collection_path: str) -> Path:
        return self._file(collection_path, ".jsonl")

    def get(self, path: str) -> dict[str, Any] | None:
        doc_file = self._doc_file(path)
        if not doc_file.exists():
            return None
        try:
            with open(doc_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Corrupt document {doc_file}: {e}") from e
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot read {doc_file}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Corrupt document {doc_file}: expected an object")
        return data

    def set(self, path: str, fields: dict[str, Any], merge: bool = True) -> None:
        doc_file = self._doc_file(path)
        data = (self.get(path) or {}) if merge else {}
        data.update(fields)

        tmp = doc_file.with_name(doc_file.name + ".tmp")
        try:
            doc_file.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, doc_file)
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot write {doc_file}: {e}") from e

    def append(self, collection_path: str, document: dict[str, Any]) -> str:
        """
        Append a document; a document whose ``id`` is already stored is not
        written twice, so a retried append is harmless.
        """
        collection_file = self._collection_file(collection_path)
        doc_id = document.get("id")
        if doc_id is not None:
            if any(d.get("id") == doc_id for d in self.list(collection_path)):
                return doc_id
        else:
            doc_id = uuid.uuid4().hex

        line = json.dumps({**document, "id": doc_id})
        try:
            collection_file.parent.mkdir(parents=True, exist_ok=True)
            with open(collection_file, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot append to {collection_file}: {e}") from e
        return doc_id

    def list(self, collection_path: str) -> list[dict[str, Any]]:
        collection_file = self._collection_file(collection_path)
        if not collection_file.exists():
            return []

        documents: list[dict[str, Any]] = []
        try:
            with open(collection_file, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        documents.append(json.loads(line))
                    except json.JSONDecodeError as e:
                        raise ValidationError(
                            f"Error parsing line {line_num} in {collection_file}: {e}"
                        ) from e
        except OSError as e:
            raise PersistenceUnavailableError(f"Cannot read {collection_file}: {e}") from e
        return documents


class InMemoryDocumentStore:
    """Dict-backed store with the same contract, for tests and dry runs."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.collections: dict[str, list[dict[str, Any]]] = {}

    def get(self, path: str) -> dict[str, Any] | None:
        key = "/".join(split_path(path))
        doc = self.documents.get(key)
        return copy.deepcopy(doc) if doc is not None else None

    def set(self, path: str, fields: dict[str, Any], merge: bool = True) -> None:
        key = "/".join(split_path(path))
        data = self.documents.get(key, {}) if merge else {}
        data.update(copy.deepcopy(fields))
        self.documents[key] = data

    def append(self, collection_path: str, document: dict[str, Any]) -> str:
        key = "/".join(split_path(collection_path))
        items = self.collections.setdefault(key, [])
        doc_id = document.get("id")
        if doc_id is not None and any(d.get("id") == doc_id for d in items):
            return doc_id
        doc_id = doc_id or uuid.uuid4().hex
        items.append({**copy.deepcopy(document), "id": doc_id})
        return doc_id

    def list(self, collection_path: str) -> list[dict[str, Any]]:
        key = "/".join(split_path(collection_path))
        return copy.deepcopy(self.collections.get(key, []))


def get_default_data_dir() -> Path:
    """
    Get the default data directory.

    ``$LIFTLOG_HOME`` if set, else ``~/.liftlog``.
    """
    override = os.environ.get("LIFTLOG_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".liftlog"
