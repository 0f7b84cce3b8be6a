"""Local state adapters: per-session key/value persistence."""

import os
from pathlib import Path

from storefront.local_state.port import LocalState


def build_local_state(session_id: str) -> LocalState:
    """Return the local state for one session.

    With ``STOREFRONT_STATE_DIR`` set, each session gets a JSON file in that
    directory; otherwise state lives in memory for the process lifetime.
    """
    state_dir = os.environ.get("STOREFRONT_STATE_DIR")
    if state_dir:
        from storefront.local_state.file_adapter import FileLocalState

        return FileLocalState(Path(state_dir) / f"{session_id}.json")

    from storefront.local_state.memory_adapter import InMemoryLocalState

    return InMemoryLocalState()
