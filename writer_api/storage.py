from __future__ import annotations
import json
import logging
import threading
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

log = logging.getLogger(__name__)

DOCUMENTS_KEY = "ai-writing-assistant-documents"
API_KEY_KEY = "openai_api_key"


class LocalStore:
    """String key-value store persisted as one JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as exc:
            # Unreadable file is discarded on the next write
            log.warning("storage: %s is not valid JSON, treating as empty: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            log.warning("storage: %s does not hold a JSON object, treating as empty", self.path)
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, separators=(",", ":"))
        tmp.replace(self.path)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if data.pop(key, None) is not None:
                self._write_all(data)


class DocumentNotFoundError(KeyError):
    pass


class Document(BaseModel):
    id: str
    title: str
    content: str
    createdAt: int
    updatedAt: int


_documents_adapter = TypeAdapter(List[Document])


def _now_ms() -> int:
    return int(time.time() * 1000)


def _generate_id() -> str:
    return uuid.uuid4().hex


class DocumentStore:
    """Saved documents, kept as an ordered list under a single store key."""

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def _save_all(self, documents: List[Document]) -> None:
        self.store.set_item(DOCUMENTS_KEY, _documents_adapter.dump_json(documents).decode("utf-8"))

    def get_all_documents(self) -> List[Document]:
        try:
            raw = self.store.get_item(DOCUMENTS_KEY)
            if not raw:
                return []
            return _documents_adapter.validate_json(raw)
        except (OSError, ValueError, ValidationError) as exc:
            log.error("storage: could not read documents, treating as empty: %s", exc)
            return []

    def get_document(self, doc_id: str) -> Optional[Document]:
        return next((d for d in self.get_all_documents() if d.id == doc_id), None)

    def save_document(self, title: str, content: str) -> Document:
        now = _now_ms()
        doc = Document(id=_generate_id(), title=title, content=content, createdAt=now, updatedAt=now)
        documents = self.get_all_documents()
        documents.append(doc)
        self._save_all(documents)
        return doc

    def update_document(self, doc_id: str, **fields: Any) -> Document:
        documents = self.get_all_documents()
        for idx, doc in enumerate(documents):
            if doc.id != doc_id:
                continue
            changes = {k: v for k, v in fields.items() if k not in {"id", "createdAt"}}
            changes["updatedAt"] = _now_ms()
            updated = Document.model_validate({**doc.model_dump(), **changes})
            documents[idx] = updated
            self._save_all(documents)
            return updated
        raise DocumentNotFoundError(f"Document with id {doc_id} not found")

    def delete_document(self, doc_id: str) -> None:
        documents = self.get_all_documents()
        remaining = [d for d in documents if d.id != doc_id]
        if len(remaining) != len(documents):
            self._save_all(remaining)


class ApiKeyStore:
    """The user's own provider key, remembered between sessions."""

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def load(self) -> str:
        return self.store.get_item(API_KEY_KEY) or ""

    def save(self, api_key: str) -> None:
        self.store.set_item(API_KEY_KEY, api_key.strip())

    def clear(self) -> None:
        self.store.remove_item(API_KEY_KEY)
