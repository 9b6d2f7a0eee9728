"""Append-only chat log per session."""

from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from tales import db
from tales.errors import CollaboratorUnavailable, ValidationError
from tales.models import MESSAGE_TYPES, Message, utcnow


class MessageLog:
    def __init__(self, history_limit: int = 50):
        self.history_limit = history_limit

    def append(self, session_id: str, body: str, type: str = 'text',
               username: str = 'Guest', sender_id: Optional[int] = None) -> Message:
        if type not in MESSAGE_TYPES:
            raise ValidationError(f'Unknown message type: {type}', field='type')
        message = Message(
            session_id=session_id,
            sender_id=sender_id,
            username=username,
            body=body,
            type=type,
            timestamp=utcnow(),
        )
        try:
            db.session.add(message)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception(f"[message-append] session={session_id} failed")
            raise CollaboratorUnavailable('Message could not be stored') from exc
        return message

    def recent_history(self, session_id: str, limit: Optional[int] = None) -> List[Message]:
        """Newest `limit` messages, returned oldest first."""
        limit = self.history_limit if limit is None else limit
        newest = (
            Message.query
            .filter_by(session_id=session_id)
            .order_by(Message.timestamp.desc(), Message.id.desc())
            .limit(limit)
            .all()
        )
        newest.reverse()
        return newest
