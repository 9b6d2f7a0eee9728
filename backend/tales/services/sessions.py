"""Session registry: persisted game sessions plus a process-local snapshot cache."""

from typing import Dict, Optional, Tuple

from flask import current_app
from sqlalchemy import case, func, update
from sqlalchemy.exc import IntegrityError

from tales import db
from tales.errors import CollaboratorUnavailable, NotFoundError
from tales.models import GameSession, generate_session_id, utcnow

WELCOME_TEXT = "Welcome to the tale, {player}. {host} is waiting by the fire."


class SessionCache:
    """Snapshots of sessions keyed by id.

    Rebuildable projection of the session table: a miss means reload from the
    store. Entries are never evicted; the cache lives as long as the process.
    """

    def __init__(self):
        self._entries: Dict[str, dict] = {}

    def get(self, session_id: str) -> Optional[dict]:
        return self._entries.get(session_id)

    def put(self, session: GameSession) -> dict:
        snapshot = session.to_dict()
        self._entries[session.id] = snapshot
        return snapshot

    def __contains__(self, session_id) -> bool:
        return session_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class SessionStore:
    def __init__(self, cache: SessionCache, message_log, points_per_clue: int = 100, host_name: str = 'Narrator'):
        self.cache = cache
        self.message_log = message_log
        self.points_per_clue = points_per_clue
        self.host_name = host_name

    def get(self, session_id: str) -> GameSession:
        session = db.session.get(GameSession, session_id) if session_id else None
        if session is None:
            raise NotFoundError(f'Session {session_id} not found')
        return session

    def snapshot(self, session_id: str) -> dict:
        cached = self.cache.get(session_id)
        if cached is not None:
            return cached
        return self.cache.put(self.get(session_id))

    def get_or_create(self, session_id: Optional[str] = None, defaults: Optional[dict] = None) -> Tuple[GameSession, bool]:
        session_id = session_id or generate_session_id()
        session = db.session.get(GameSession, session_id)
        if session is not None:
            self.cache.put(session)
            return session, False

        defaults = defaults or {}
        session = GameSession(
            id=session_id,
            status='waiting',
            current_clue=1,
            score=0,
            hints_used=0,
            player_name=defaults.get('player_name'),
            host_name=defaults.get('host_name') or self.host_name,
        )
        db.session.add(session)
        try:
            db.session.commit()
        except IntegrityError:
            # Another join created it first
            db.session.rollback()
            session = self.get(session_id)
            self.cache.put(session)
            return session, False

        current_app.logger.info(f"[session-create] session={session_id} player={session.player_name}")
        try:
            self.message_log.append(
                session_id,
                WELCOME_TEXT.format(player=session.player_name or 'traveller', host=session.host_name),
                type='system',
                username=session.host_name,
            )
        except CollaboratorUnavailable:
            current_app.logger.warning(f"[session-create] welcome message not stored session={session_id}")
        self.cache.put(session)
        return session, True

    def record_correct_answer(self, session_id: str, clue_id: int, final_clue: int) -> Tuple[GameSession, bool]:
        """Credit a solved clue with atomic UPDATEs so concurrent answers never lose points.

        Returns (session, advanced). `advanced` is True only for the answer that
        moved current_clue past clue_id; repeats and concurrent duplicates get False.
        """
        now = utcnow()
        next_clue = clue_id + 1
        completing = clue_id >= final_clue
        advanced = db.session.execute(
            update(GameSession)
            .where(GameSession.id == session_id, GameSession.current_clue <= clue_id)
            .values(current_clue=next_clue)
            .execution_options(synchronize_session=False)
        ).rowcount > 0
        stmt = (
            update(GameSession)
            .where(GameSession.id == session_id)
            .values(
                score=GameSession.score + self.points_per_clue,
                status=case(
                    (GameSession.status == 'completed', 'completed'),
                    else_='completed' if completing else 'active',
                ),
                started_at=func.coalesce(GameSession.started_at, now),
                completed_at=func.coalesce(GameSession.completed_at, now) if completing else GameSession.completed_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        if result.rowcount == 0:
            db.session.rollback()
            raise NotFoundError(f'Session {session_id} not found')
        db.session.commit()
        session = self._reload(session_id)
        current_app.logger.info(
            f"[answer-credit] session={session_id} clue={clue_id} score={session.score} "
            f"current_clue={session.current_clue} status={session.status} advanced={advanced}"
        )
        return session, advanced

    def record_hint_used(self, session_id: str) -> int:
        stmt = (
            update(GameSession)
            .where(GameSession.id == session_id)
            .values(hints_used=GameSession.hints_used + 1)
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        if result.rowcount == 0:
            db.session.rollback()
            raise NotFoundError(f'Session {session_id} not found')
        db.session.commit()
        return self._reload(session_id).hints_used

    def start(self, session_id: str) -> GameSession:
        """Explicit waiting -> active; any other status is left alone."""
        stmt = (
            update(GameSession)
            .where(GameSession.id == session_id, GameSession.status == 'waiting')
            .values(status='active', started_at=func.coalesce(GameSession.started_at, utcnow()))
            .execution_options(synchronize_session=False)
        )
        db.session.execute(stmt)
        db.session.commit()
        return self._reload(session_id)

    def _reload(self, session_id: str) -> GameSession:
        session = self.get(session_id)
        db.session.refresh(session)
        self.cache.put(session)
        return session
