import threading
import time
import uuid
from typing import Callable, Dict, Generic, List, Tuple, TypeVar

from fastapi import HTTPException
from starlette.status import HTTP_404_NOT_FOUND

T = TypeVar("T")


class SessionRegistry(Generic[T]):
    """
    Registre en mémoire des instances d'écran (un view-model par session).
    Une session expire après `ttl_seconds` sans accès.
    """

    def __init__(self, prefix: str, ttl_seconds: int = 60 * 60) -> None:
        self._prefix = prefix
        self._ttl_seconds = ttl_seconds
        self._sessions: Dict[str, Tuple[float, T]] = {}
        self._lock = threading.Lock()

    def create(self, factory: Callable[[str], T]) -> T:
        """
        Construit l'écran via `factory(session_id)` et l'enregistre.
        """
        session_id = f"{self._prefix}_{uuid.uuid4().hex[:12]}"
        screen = factory(session_id)
        with self._lock:
            self._purge_expired()
            self._sessions[session_id] = (time.time(), screen)
        return screen

    def get(self, session_id: str) -> T:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Session not found.")
            touched_at, screen = entry
            if time.time() - touched_at > self._ttl_seconds:
                del self._sessions[session_id]
                raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Session expired.")
            self._sessions[session_id] = (time.time(), screen)
            return screen

    def drop(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Session not found.")

    def __len__(self) -> int:
        return len(self._sessions)

    def _purge_expired(self) -> None:
        now = time.time()
        expired: List[str] = [
            sid for sid, (touched_at, _) in self._sessions.items()
            if now - touched_at > self._ttl_seconds
        ]
        for sid in expired:
            del self._sessions[sid]
