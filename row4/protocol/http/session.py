from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from ...engine.game import Game
from ...search.config import SearchConfig
from ...search.service import SearchService


@dataclass
class Session:
    """One game plus the search service whose cache belongs to it."""

    game: Game
    search: SearchService = field(default_factory=SearchService)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions
    """

    def __init__(self, config: Optional[SearchConfig] = None) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, Session] = {}
        self._config = config

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        session = Session(game=game or Game.new(), search=SearchService(self._config))
        with self._lock:
            self._sessions[gid] = session
        return gid

    def get(self, game_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(game_id)

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._sessions.pop(game_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
