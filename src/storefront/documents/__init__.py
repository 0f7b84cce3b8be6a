"""Document store adapters: the hosted document database behind a port."""

import os

from storefront.documents.port import DocumentStore


def build_document_store() -> DocumentStore:
    """Return a document store adapter selected by ``DOCUMENT_STORE_ADAPTER``.

    Only the in-memory adapter ships with the storefront; hosted backends
    plug in by implementing ``DocumentStore``.
    """
    adapter = os.environ.get("DOCUMENT_STORE_ADAPTER", "memory")
    if adapter == "memory":
        from storefront.documents.memory_adapter import InMemoryDocumentStore

        return InMemoryDocumentStore()
    raise ValueError(f"Unknown document store adapter: {adapter}")
