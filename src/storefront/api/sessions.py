"""Per-session storefront contexts for the API process.

Each browser session id maps to one ``StorefrontContext`` with its own local
state and identity session. The document store, gateway, object storage
and account table are shared by every session.
"""

import re
import threading
import time
from collections import OrderedDict
from collections.abc import Callable

import structlog
from protean.exceptions import ValidationError

from storefront.context import StorefrontContext
from storefront.documents import build_document_store
from storefront.documents.port import DocumentStore
from storefront.gateway import build_gateway
from storefront.gateway.port import PaymentGateway
from storefront.identity.memory_adapter import InMemoryIdentityProvider
from storefront.local_state import build_local_state
from storefront.local_state.port import LocalState
from storefront.storage.memory_adapter import InMemoryObjectStorage
from storefront.storage.port import ObjectStorage

logger = structlog.get_logger(__name__)

_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]{8,64}$")

MAX_SESSIONS = 1000
SESSION_IDLE_TIMEOUT = 30 * 60


class SessionRegistry:
    """Session contexts, least recently used first.

    A context idle for longer than ``idle_timeout`` seconds, or the least
    recently used one once ``max_sessions`` is exceeded, is disposed and
    dropped. A later request with the same id starts a fresh context over
    that session's local state.
    """

    def __init__(
        self,
        documents: DocumentStore | None = None,
        gateway: PaymentGateway | None = None,
        storage: ObjectStorage | None = None,
        local_state_factory: Callable[[str], LocalState] = build_local_state,
        max_sessions: int = MAX_SESSIONS,
        idle_timeout: float = SESSION_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.documents = documents or build_document_store()
        self.gateway = gateway or build_gateway()
        self.storage = storage or InMemoryObjectStorage()
        self.local_state_factory = local_state_factory
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self.clock = clock
        self.accounts: dict[str, dict] = {}
        self._contexts: OrderedDict[str, tuple[StorefrontContext, float]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._contexts

    def get(self, session_id: str) -> StorefrontContext:
        if not _SESSION_ID.match(session_id):
            raise ValidationError({"session_id": ["Session id must be 8-64 letters, digits, '-' or '_'"]})

        now = self.clock()
        with self._lock:
            evicted = self._expire(now)
            entry = self._contexts.pop(session_id, None)
            if entry is None:
                context = StorefrontContext(
                    documents=self.documents,
                    local_state=self.local_state_factory(session_id),
                    identity=InMemoryIdentityProvider(self.accounts),
                    gateway=self.gateway,
                    storage=self.storage,
                ).start()
            else:
                context = entry[0]
            self._contexts[session_id] = (context, now)
            while len(self._contexts) > self.max_sessions:
                evicted.append(self._contexts.popitem(last=False))

        self._dispose(evicted)
        return context

    def evict_idle(self) -> int:
        """Dispose every context idle past the timeout. Returns how many were dropped."""
        with self._lock:
            evicted = self._expire(self.clock())
        self._dispose(evicted)
        return len(evicted)

    def close(self, session_id: str) -> None:
        with self._lock:
            entry = self._contexts.pop(session_id, None)
        if entry is not None:
            entry[0].dispose()

    def close_all(self) -> None:
        with self._lock:
            contexts, self._contexts = [context for context, _ in self._contexts.values()], OrderedDict()
        for context in contexts:
            context.dispose()

    def _expire(self, now: float) -> list:
        evicted = []
        while self._contexts:
            _, last_used = next(iter(self._contexts.values()))
            if now - last_used <= self.idle_timeout:
                break
            evicted.append(self._contexts.popitem(last=False))
        return evicted

    def _dispose(self, evicted: list) -> None:
        for session_id, (context, _) in evicted:
            context.dispose()
            logger.info("session_evicted", session_id=session_id)
