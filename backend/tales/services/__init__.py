"""Game domain services.

Pure(ish) session, chat, grading and reward logic imported by the HTTP
routes and socket handlers, keeping transport concerns separated from the
game mechanics. One GameServices instance is built per app and stored in
app.extensions['tales'].
"""

import random

from flask import current_app

from tales.services.broadcast import RoomBroadcaster
from tales.services.clues import ClueGrader, parse_extra_answers
from tales.services.host import HostResponder
from tales.services.messages import MessageLog
from tales.services.presence import PresenceTracker
from tales.services.rewards import RewardDispatcher
from tales.services.sessions import SessionCache, SessionStore


class GameServices:
    def __init__(self, app, socketio, namespace: str = '/ws', rng: random.Random = None):
        cfg = app.config
        self.app = app
        self.socketio = socketio
        self.rng = rng or random.Random()
        self.cache = SessionCache()
        self.presence = PresenceTracker()
        self.broadcaster = RoomBroadcaster(socketio, namespace=namespace)
        self.messages = MessageLog(history_limit=int(cfg.get('HISTORY_LIMIT', 50)))
        self.sessions = SessionStore(
            self.cache,
            self.messages,
            points_per_clue=int(cfg.get('POINTS_PER_CLUE', 100)),
            host_name=cfg.get('HOST_NAME', 'Narrator'),
        )
        self.rewards = RewardDispatcher()
        self._host = None
        self._grader = None

    @property
    def host(self) -> HostResponder:
        """Loaded once from the host_reply table; reference data never changes."""
        if self._host is None:
            from tales.models import HostReply
            rows = HostReply.query.order_by(HostReply.position, HostReply.id).all()
            self._host = HostResponder.from_rows(rows, rng=self.rng)
        return self._host

    @host.setter
    def host(self, responder: HostResponder) -> None:
        self._host = responder

    @property
    def grader(self) -> ClueGrader:
        if self._grader is None:
            cfg = self.app.config
            if cfg.get('CLUE_SOURCE') == 'levels':
                from tales.models import Level
                self._grader = ClueGrader.from_levels(Level.query.order_by(Level.level_id).all())
            else:
                self._grader = ClueGrader(extra_answers=parse_extra_answers(cfg.get('EXTRA_CLUE_ANSWERS', '')))
        return self._grader

    @grader.setter
    def grader(self, grader: ClueGrader) -> None:
        self._grader = grader

    def reload_grader(self) -> None:
        self._grader = None

    def host_reply_delay(self) -> float:
        cfg = self.app.config
        base = float(cfg.get('HOST_REPLY_DELAY_SEC', 1.5))
        jitter = float(cfg.get('HOST_REPLY_JITTER_SEC', 0.0))
        return base + (self.rng.uniform(0, jitter) if jitter > 0 else 0.0)


def get_services() -> GameServices:
    return current_app.extensions['tales']
