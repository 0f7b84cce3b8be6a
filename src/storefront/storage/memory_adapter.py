"""In-memory object storage with chunked progress reporting."""

from collections.abc import Callable

from storefront.storage.port import ObjectStorage


class InMemoryObjectStorage(ObjectStorage):
    def __init__(self, base_url: str = "memory://storefront", chunk_size: int = 64 * 1024) -> None:
        self.base_url = base_url.rstrip("/")
        self.chunk_size = chunk_size
        self.objects: dict[str, bytes] = {}

    def upload(self, data: bytes, path: str, on_progress: Callable[[int], None] | None = None) -> str:
        total = len(data)
        sent = 0
        while True:
            sent = min(total, sent + self.chunk_size)
            if on_progress is not None:
                on_progress(round(sent / total * 100) if total else 100)
            if sent >= total:
                break
        self.objects[path] = bytes(data)
        return f"{self.base_url}/{path}"

    def delete(self, path: str) -> bool:
        return self.objects.pop(path, None) is not None
