"""Player progression: experience, gems, levels and the leaderboard."""

from typing import Optional

from flask import current_app
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from tales import db
from tales.errors import NotFoundError, ValidationError
from tales.models import CompletedLevel, GameSession, InventoryItem, Message, User

POINTS_PER_LEVEL = 100
LEADERBOARD_ORDERINGS = {
    'score': User.experience,
    'experience': User.experience,
    'clues': User.clues_solved,
    'clues_solved': User.clues_solved,
}


def _award(user_id: int, experience: int, gems: int, clues: int = 0) -> int:
    """Atomically add experience/gems/clues and recompute the level. Returns rows touched."""
    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(
            experience=User.experience + experience,
            gems=User.gems + gems,
            clues_solved=User.clues_solved + clues,
            level=(User.experience + experience) // POINTS_PER_LEVEL + 1,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    db.session.commit()
    return result.rowcount


def credit_clue(user_id: Optional[int], points: int, gems: int) -> Optional[User]:
    """Credit a solved clue to a logged-in player. Anonymous players are skipped."""
    if user_id is None:
        return None
    if not _award(user_id, points, gems, clues=1):
        current_app.logger.warning(f"[credit-skip] unknown user={user_id}")
        return None
    user = db.session.get(User, user_id)
    db.session.refresh(user)
    return user


def _amount(value, default: int, field: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer', field=field)
    try:
        amount = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer', field=field)
    if amount < 0:
        raise ValidationError(f'{field} must not be negative', field=field)
    return amount


def record_level_progress(username: str, level_id: int, completed: bool,
                          score: Optional[int] = None, gems: Optional[int] = None) -> User:
    """Single-player progress: credit each level at most once per user."""
    if not username:
        raise ValidationError('username is required', field='username')
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise NotFoundError('User not found')

    points = _amount(score, POINTS_PER_LEVEL, 'score')
    gem_amount = _amount(gems, 20, 'gems')
    if completed:
        db.session.add(CompletedLevel(user_id=user.id, level_id=level_id))
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.info(f"[progress-skip] user={user.id} level={level_id} already completed")
        else:
            _award(user.id, points, gem_amount)
            current_app.logger.info(f"[progress] user={user.id} level={level_id} completed")

    db.session.refresh(user)
    return user


def completed_levels(user_id: int):
    rows = CompletedLevel.query.filter_by(user_id=user_id).order_by(CompletedLevel.level_id).all()
    return [r.level_id for r in rows]


def leaderboard(limit: int = 10, by: str = 'score'):
    ordering = LEADERBOARD_ORDERINGS.get(by)
    if ordering is None:
        raise ValidationError(f'Cannot rank by {by}', field='by')
    users = User.query.order_by(ordering.desc(), User.id).limit(limit).all()
    return [
        {
            'username': u.username,
            'score': u.experience,
            'level': u.level,
            'clues_solved': u.clues_solved,
        }
        for u in users
    ]


def stats(active_players: int) -> dict:
    return {
        'users': User.query.count(),
        'sessions': GameSession.query.count(),
        'completed_sessions': GameSession.query.filter_by(status='completed').count(),
        'messages': Message.query.count(),
        'gifts_granted': int(db.session.query(func.coalesce(func.sum(InventoryItem.quantity), 0)).scalar() or 0),
        'clues_solved': int(db.session.query(func.coalesce(func.sum(User.clues_solved), 0)).scalar() or 0),
        'active_players': active_players,
    }
