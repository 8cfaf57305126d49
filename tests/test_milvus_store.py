import pytest
from langchain_core.documents import Document

from repokb.errors import StorageError
from repokb.settings import settings
from repokb.storage import MilvusVectorStore
from repokb.storage.milvus_store import chunk_id


class DummyEmbedding:
    def embed_documents(self, texts):
        return [[float(len(text))] for text in texts]

    def embed_query(self, text):
        return [float(len(text))]


class DummyCollection:
    def __init__(self) -> None:
        self.batches = []

    def upsert(self, data) -> None:
        self.batches.append(data)


def _chunk(text: str, index: int = 0) -> Document:
    return Document(
        page_content=text,
        metadata={
            "knowledge_tag": "widgets",
            "file_name": "app.py",
            "file_path": "src/app.py",
            "chunk_index": index,
        },
    )


def test_chunk_id_is_stable_and_content_sensitive() -> None:
    assert chunk_id(_chunk("a")) == chunk_id(_chunk("a"))
    assert chunk_id(_chunk("a")) != chunk_id(_chunk("b"))
    assert chunk_id(_chunk("a", 0)) != chunk_id(_chunk("a", 1))


def test_add_embeds_and_upserts_columns(monkeypatch) -> None:
    monkeypatch.setattr(settings, "milvus_upsert_batch_size", 2)
    store = MilvusVectorStore(collection_name="test", dim=1, embedding_client=DummyEmbedding())
    collection = DummyCollection()
    store._collection = collection

    store.add([_chunk("one", 0), _chunk("three", 1), _chunk("x", 2)])

    assert len(collection.batches) == 2
    ids, tags, names, texts, vectors, metadata = collection.batches[0]
    assert tags == ["widgets", "widgets"]
    assert names == ["app.py", "app.py"]
    assert texts == ["one", "three"]
    assert vectors == [[3.0], [5.0]]
    assert metadata[0]["file_path"] == "src/app.py"
    assert collection.batches[1][3] == ["x"]


def test_add_without_chunks_is_noop() -> None:
    store = MilvusVectorStore(collection_name="test", dim=1, embedding_client=DummyEmbedding())
    store.add([])
    assert store._collection is None


def test_embedding_failure_becomes_storage_error() -> None:
    class BrokenEmbedding(DummyEmbedding):
        def embed_documents(self, texts):
            raise ConnectionError("embedding service down")

    store = MilvusVectorStore(collection_name="test", dim=1, embedding_client=BrokenEmbedding())
    store._collection = DummyCollection()
    with pytest.raises(StorageError):
        store.add([_chunk("one")])


def test_connection_failure_becomes_storage_error(monkeypatch) -> None:
    store = MilvusVectorStore(collection_name="test", dim=1, embedding_client=DummyEmbedding())

    def _refuse() -> None:
        raise ConnectionError("milvus unreachable")

    monkeypatch.setattr(store, "connect", _refuse)
    with pytest.raises(StorageError):
        store.add([_chunk("one")])
