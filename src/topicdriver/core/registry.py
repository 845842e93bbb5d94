from __future__ import annotations
import threading
from typing import Dict, List, Mapping, Optional

from topicdriver.core.models import Handler, RegistrationEntry


class TopicRegistry:
    """topic -> RegistrationEntry. The lock is only held around dict operations."""
    def __init__(self, topics: Optional[Mapping[str, Handler]] = None):
        self._lock = threading.Lock()
        self._entries: Dict[str, RegistrationEntry] = {}
        if topics:
            self.replace_all(topics)

    def __contains__(self, topic: str) -> bool:
        with self._lock:
            return topic in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def put(self, topic: str, handler: Handler) -> None:
        with self._lock:
            self._entries[topic] = RegistrationEntry(topic, handler)

    def replace_all(self, topics: Mapping[str, Handler]) -> None:
        fresh = {t: RegistrationEntry(t, h) for t, h in topics.items()}
        with self._lock:
            self._entries = fresh

    def handler_for(self, topic: str) -> Optional[Handler]:
        with self._lock:
            entry = self._entries.get(topic)
        return entry.handler if entry else None

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._entries)
