from typing import Dict, List, Optional, Set

from tales.models import utcnow


class PresenceTracker:
    """Connected sockets keyed by sid. In-process only, gone on restart."""

    def __init__(self):
        self._by_sid: Dict[str, dict] = {}

    def on_connect(self, sid: str, user_id: Optional[int] = None, username: Optional[str] = None) -> dict:
        entry = {
            'sid': sid,
            'user_id': user_id,
            'username': username,
            'rooms': set(),
            'connected_at': utcnow(),
        }
        self._by_sid[sid] = entry
        return entry

    def get(self, sid: str) -> Optional[dict]:
        return self._by_sid.get(sid)

    def set_username(self, sid: str, username: str) -> None:
        entry = self._by_sid.get(sid) or self.on_connect(sid)
        entry['username'] = username

    def attach(self, sid: str, session_id: str) -> None:
        entry = self._by_sid.get(sid) or self.on_connect(sid)
        entry['rooms'].add(session_id)

    def detach(self, sid: str, session_id: str) -> None:
        entry = self._by_sid.get(sid)
        if entry:
            entry['rooms'].discard(session_id)

    def rooms_of(self, sid: str) -> Set[str]:
        entry = self._by_sid.get(sid)
        return set(entry['rooms']) if entry else set()

    def on_disconnect(self, sid: str) -> Optional[dict]:
        return self._by_sid.pop(sid, None)

    def is_online(self, user_id: int) -> bool:
        return any(e['user_id'] == user_id for e in self._by_sid.values())

    def online(self) -> List[str]:
        names = {e['username'] for e in self._by_sid.values() if e['username']}
        return sorted(names)

    def count(self) -> int:
        return len(self._by_sid)
