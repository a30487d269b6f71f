import json
import logging
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from notes_portal.models.upload import RecentUpload

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 3


class RecentUploadsStore:
    """
    Interface de persistance des uploads récents (équivalent du localStorage).
    """

    def load(self) -> List[RecentUpload]:
        raise NotImplementedError

    def save(self, items: List[RecentUpload]) -> None:
        raise NotImplementedError


class MemoryRecentUploadsStore(RecentUploadsStore):
    def __init__(self, items: Optional[List[RecentUpload]] = None) -> None:
        self._items: List[RecentUpload] = list(items or [])

    def load(self) -> List[RecentUpload]:
        return list(self._items)

    def save(self, items: List[RecentUpload]) -> None:
        self._items = list(items)


class JsonFileRecentUploadsStore(RecentUploadsStore):
    """
    Un seul fichier JSON contenant un tableau de {course, subject, unit, url}.
    Un contenu illisible est journalisé et traité comme une liste vide.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def load(self) -> List[RecentUpload]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise ValueError("recent uploads file must hold a JSON array")
            return [RecentUpload.model_validate(item) for item in raw]
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Failed to parse recent uploads (%s): %s", self.path, e)
            return []

    def save(self, items: List[RecentUpload]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # écriture dans un fichier temporaire puis remplacement atomique
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([item.model_dump() for item in items], f, indent=2, ensure_ascii=False)
        tmp.replace(self.path)


class RecentUploads:
    """
    Historique des derniers uploads réussis : le plus récent en tête, plafonné à `limit`.
    """

    def __init__(self, store: RecentUploadsStore, limit: int = DEFAULT_LIMIT) -> None:
        self._store = store
        self._limit = limit
        self._lock = threading.Lock()

    def list(self) -> List[RecentUpload]:
        return self._store.load()[: self._limit]

    def record(self, entry: RecentUpload) -> List[RecentUpload]:
        with self._lock:
            items = [entry] + self._store.load()
            items = items[: self._limit]
            self._store.save(items)
            return items
