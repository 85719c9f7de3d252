import threading

import pytest

from writer_api.storage import (
    API_KEY_KEY,
    DOCUMENTS_KEY,
    ApiKeyStore,
    DocumentNotFoundError,
    DocumentStore,
    LocalStore,
)


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / "nested" / "store.json")


def test_local_store_items(store):
    assert store.get_item("missing") is None
    store.set_item("a", "1")
    store.set_item("b", "2")
    assert store.get_item("a") == "1"
    store.remove_item("a")
    assert store.get_item("a") is None
    assert LocalStore(store.path).get_item("b") == "2"


def test_document_lifecycle(store):
    docs = DocumentStore(store)
    assert docs.get_all_documents() == []

    first = docs.save_document("Draft", "Once upon a time")
    second = docs.save_document("Notes", "")
    assert first.id != second.id
    assert first.createdAt == first.updatedAt
    assert [d.id for d in docs.get_all_documents()] == [first.id, second.id]

    updated = docs.update_document(first.id, content="Once upon a midnight", id="hijack", createdAt=0)
    assert updated.id == first.id
    assert updated.createdAt == first.createdAt
    assert updated.updatedAt >= first.updatedAt
    assert docs.get_document(first.id).content == "Once upon a midnight"

    docs.delete_document(first.id)
    docs.delete_document(first.id)
    assert docs.get_document(first.id) is None
    assert [d.id for d in docs.get_all_documents()] == [second.id]


def test_update_missing_document_raises(store):
    with pytest.raises(DocumentNotFoundError):
        DocumentStore(store).update_document("nope", title="x")


def test_corrupt_documents_read_as_empty(store):
    store.set_item(DOCUMENTS_KEY, "not json at all")
    docs = DocumentStore(store)
    assert docs.get_all_documents() == []
    saved = docs.save_document("Fresh", "start")
    assert docs.get_all_documents() == [saved]


def test_api_key_store(store):
    keys = ApiKeyStore(store)
    assert keys.load() == ""
    keys.save("  sk-user  ")
    assert keys.load() == "sk-user"
    assert store.get_item(API_KEY_KEY) == "sk-user"
    keys.clear()
    assert keys.load() == ""


@pytest.mark.parametrize("raw", ["{truncated", "[1, 2, 3]", "\"just a string\""])
def test_corrupt_store_file_is_replaced_on_next_save(store, raw):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(raw, encoding="utf-8")
    docs = DocumentStore(store)
    assert docs.get_all_documents() == []
    saved = docs.save_document("Fresh", "start")
    assert docs.get_all_documents() == [saved]
    assert LocalStore(store.path).get_item(DOCUMENTS_KEY)


def test_concurrent_writes_keep_every_key(store):
    def _write(n):
        for i in range(20):
            store.set_item(f"k{n}-{i}", str(i))

    threads = [threading.Thread(target=_write, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    for n in range(4):
        for i in range(20):
            assert store.get_item(f"k{n}-{i}") == str(i)
