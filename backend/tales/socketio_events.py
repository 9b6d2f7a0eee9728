from functools import wraps
from typing import Optional, Tuple

from flask import current_app, request
from flask_login import current_user
from flask_socketio import emit
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from tales import db, socketio
from tales.errors import (
    CollaboratorUnavailable, TalesError, ValidationError, build_error_payload, require_field,
)
from tales.models import User, utcnow
from tales.services import get_services
from tales.services.progress import credit_clue
from tales.services.scheduler import schedule

CLIENT_MESSAGE_TYPES = ('text', 'hint', 'gift', 'emote')


def socket_handler(fn):
    """Report domain and store errors to the caller instead of raising into Socket.IO."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except TalesError as exc:
            emit('error', exc.to_dict())
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[socket-error] handler={fn.__name__} sid={_get_sid()}")
            emit('error', build_error_payload(code='server_error', message='Internal server error'))
        except Exception:
            current_app.logger.exception(f"[socket-error] handler={fn.__name__} sid={_get_sid()}")
            emit('error', build_error_payload(code='server_error', message='Internal server error'))
    return wrapper


def socket_event(bare_field: Optional[str] = None):
    """socket_handler for client events: the payload is always a dict.

    A bare string is accepted as `bare_field` when given; any other
    non-object payload is a ValidationError.
    """
    def decorator(fn):
        @socket_handler
        @wraps(fn)
        def wrapper(data=None, *args):
            if data is None:
                data = {}
            elif bare_field and isinstance(data, str):
                data = {bare_field: data}
            elif not isinstance(data, dict):
                raise ValidationError('payload must be an object', field='payload')
            return fn(data, *args)
        return wrapper
    return decorator


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _identity() -> Tuple[Optional[int], Optional[str]]:
    if current_user and current_user.is_authenticated:
        return current_user.id, current_user.username
    return None, None


def _display_name(data=None) -> str:
    entry = get_services().presence.get(_get_sid()) or {}
    _, username = _identity()
    return username or entry.get('username') or (data or {}).get('username') or 'Guest'


def _set_online(user_id: int, online: bool) -> None:
    db.session.execute(
        update(User).where(User.id == user_id).values(online=online).execution_options(synchronize_session=False)
    )
    db.session.commit()


def _active_users_payload(services) -> dict:
    return {'count': services.presence.count(), 'users': services.presence.online()}


@socket_handler
def handle_connect(auth=None):
    services = get_services()
    user_id, username = _identity()
    services.presence.on_connect(_get_sid(), user_id, username)
    if user_id is not None:
        _set_online(user_id, True)
    current_app.logger.info(f"[connect] sid={_get_sid()} user={user_id}")
    emit('connected', {'message': 'Connected to /ws', 'username': username})
    services.broadcaster.announce('active-users', _active_users_payload(services))


@socket_handler
def handle_disconnect(reason=None):
    services = get_services()
    sid = _get_sid()
    entry = services.presence.on_disconnect(sid)
    if not entry:
        return
    username = entry.get('username') or 'Guest'
    for session_id in entry['rooms']:
        services.broadcaster.broadcast(session_id, 'player-left', {'session_id': session_id, 'username': username},
                                       skip_sid=sid)
    user_id = entry.get('user_id')
    if user_id is not None and not services.presence.is_online(user_id):
        _set_online(user_id, False)
    current_app.logger.info(f"[disconnect] sid={sid} user={user_id} rooms={sorted(entry['rooms'])}")
    services.broadcaster.announce('user-left', {'username': username, 'count': services.presence.count()})
    services.broadcaster.announce('active-users', _active_users_payload(services))


def _enter_session(data: dict, default_session_id: Optional[str] = None) -> dict:
    services = get_services()
    sid = _get_sid()
    username = _display_name(data)
    services.presence.set_username(sid, username)

    session_id = data.get('session_id') or default_session_id
    session, created = services.sessions.get_or_create(
        session_id,
        {'player_name': data.get('player_name') or username},
    )
    room = services.broadcaster.join_room(sid, session.id)
    services.presence.attach(sid, session.id)

    snapshot = services.sessions.snapshot(session.id)
    services.broadcaster.emit_to(sid, 'game-joined', {'session': snapshot, 'room': room, 'created': created})
    history = services.messages.recent_history(session.id)
    services.broadcaster.emit_to(sid, 'message-history', {
        'session_id': session.id,
        'messages': [m.to_dict() for m in history],
    })
    services.broadcaster.broadcast(session.id, 'player-joined', {'session_id': session.id, 'username': username},
                                   skip_sid=sid)
    return snapshot


@socket_event(bare_field='session_id')
def handle_join_game(data):
    _enter_session(data)


@socket_event(bare_field='username')
def handle_join_chat(data):
    services = get_services()
    _enter_session(data, default_session_id=current_app.config.get('LOBBY_SESSION_ID', 'lobby'))
    username = _display_name(data)
    services.broadcaster.announce('user-joined', {'username': username, 'count': services.presence.count()})
    services.broadcaster.announce('active-users', _active_users_payload(services))


@socket_event()
def handle_leave_game(data):
    services = get_services()
    sid = _get_sid()
    session_id = require_field(data, 'session_id')
    services.broadcaster.leave_room(sid, session_id)
    services.presence.detach(sid, session_id)
    services.broadcaster.broadcast(session_id, 'player-left', {'session_id': session_id, 'username': _display_name(data)})
    emit('game-left', {'session_id': session_id})


@socket_event()
def handle_get_messages(data):
    services = get_services()
    session_id = require_field(data, 'session_id')
    history = services.messages.recent_history(session_id)
    emit('message-history', {'session_id': session_id, 'messages': [m.to_dict() for m in history]})


@socket_event()
def handle_send_message(data):
    services = get_services()
    session_id = require_field(data, 'session_id')
    body = require_field(data, 'message')
    msg_type = (data or {}).get('type') or 'text'
    if msg_type not in CLIENT_MESSAGE_TYPES:
        raise ValidationError(f'Unknown message type: {msg_type}', field='type')
    services.sessions.get(session_id)

    user_id, _ = _identity()
    username = _display_name(data)
    try:
        payload = services.messages.append(session_id, body, type=msg_type, username=username,
                                           sender_id=user_id).to_dict()
    except CollaboratorUnavailable:
        # Chat stays live even when the log write fails
        payload = {
            'id': None,
            'session_id': session_id,
            'sender_id': user_id,
            'username': username,
            'message': body,
            'type': msg_type,
            'timestamp': utcnow().isoformat(),
            'reactions': [],
            'read': False,
        }
    services.broadcaster.broadcast(session_id, 'new-message', payload)

    if msg_type != 'text':
        return
    reply = services.host.resolve(body)
    # Fires even if the sender disconnects first; the room still gets it
    schedule(
        current_app._get_current_object(),
        services.socketio,
        services.host_reply_delay(),
        _deliver_host_reply,
        session_id, reply, user_id, username,
        name=f"host-reply:{session_id}",
    )


def _deliver_host_reply(session_id, reply, user_id, username):
    services = get_services()
    host_name = current_app.config.get('HOST_NAME', 'Narrator')
    try:
        stored = services.messages.append(session_id, reply.response, type='text', username=host_name)
        timestamp = stored.timestamp.isoformat()
    except CollaboratorUnavailable:
        timestamp = utcnow().isoformat()
    current_app.logger.info(f"[host-reply] session={session_id} emotion={reply.emotion} reward={reply.reward}")
    services.broadcaster.broadcast(session_id, 'host-response', {
        'session_id': session_id,
        'username': host_name,
        'message': reply.response,
        'emotion': reply.emotion,
        'reward': reply.reward,
        'timestamp': timestamp,
    })
    if reply.reward:
        _announce_grant(services, session_id, user_id, username, reply.reward)


def _announce_grant(services, session_id, user_id, username, reward_name) -> None:
    grant = services.rewards.grant(user_id, reward_name)
    if grant is None:
        return
    payload = grant.to_dict()
    payload.update({'session_id': session_id, 'username': username, 'user_id': user_id})
    services.broadcaster.broadcast(session_id, 'receive-gift', payload)


@socket_event()
def handle_submit_answer(data):
    services = get_services()
    session_id = require_field(data, 'session_id')
    clue_id = require_field(data, 'clue_id', int)
    answer = require_field(data, 'answer')
    services.sessions.get(session_id)

    grader = services.grader
    grade = grader.grade(clue_id, answer)
    user_id, _ = _identity()
    username = _display_name(data)
    current_app.logger.info(f"[answer] session={session_id} clue={clue_id} user={user_id} correct={grade.correct}")

    if not grade.correct:
        services.broadcaster.emit_to(_get_sid(), 'answer-wrong', {
            'session_id': session_id,
            'clue_id': clue_id,
            'narrative': grade.narrative,
        })
        return

    cfg = current_app.config
    session, advanced = services.sessions.record_correct_answer(session_id, clue_id, grader.final_clue)
    # Re-solving a clue scores the session again but credits the player once
    reward = grade.reward if advanced else None
    if advanced:
        credit_clue(user_id, int(cfg.get('POINTS_PER_CLUE', 100)), int(cfg.get('GEMS_PER_CLUE', 20)))
    services.broadcaster.broadcast(session_id, 'answer-correct', {
        'session_id': session_id,
        'clue_id': clue_id,
        'username': username,
        'narrative': grade.narrative,
        'reward': reward,
        'session': services.sessions.snapshot(session_id),
    })
    if reward:
        _announce_grant(services, session_id, user_id, username, reward)
    if advanced and session.status == 'completed' and clue_id >= grader.final_clue:
        services.broadcaster.broadcast(session_id, 'game-completed', {
            'session_id': session_id,
            'score': session.score,
            'hints_used': session.hints_used,
        })


@socket_event()
def handle_request_hint(data):
    services = get_services()
    session_id = require_field(data, 'session_id')
    clue_id = require_field(data, 'clue_id', int)
    hints_used = services.sessions.record_hint_used(session_id)
    services.broadcaster.emit_to(_get_sid(), 'receive-hint', {
        'session_id': session_id,
        'clue_id': clue_id,
        'hint': services.grader.hint(clue_id),
        'hints_used': hints_used,
    })


@socket_event()
def handle_start_game(data):
    services = get_services()
    session_id = require_field(data, 'session_id')
    services.sessions.start(session_id)
    services.broadcaster.broadcast(session_id, 'game-started', {'session': services.sessions.snapshot(session_id)})


@socket_event()
def handle_typing(data):
    services = get_services()
    session_id = require_field(data, 'session_id')
    services.broadcaster.broadcast(session_id, 'player-typing', {
        'session_id': session_id,
        'username': _display_name(data),
        'is_typing': bool((data or {}).get('is_typing')),
    }, skip_sid=_get_sid())


@socket_event()
def handle_send_emote(data):
    services = get_services()
    session_id = require_field(data, 'session_id')
    emote = require_field(data, 'emote')
    services.broadcaster.broadcast(session_id, 'player-emote', {
        'session_id': session_id,
        'username': _display_name(data),
        'emote': emote,
    }, skip_sid=_get_sid())


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the given namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join-game', handle_join_game, namespace=namespace)
    socketio.on_event('join-chat', handle_join_chat, namespace=namespace)
    socketio.on_event('leave-game', handle_leave_game, namespace=namespace)
    socketio.on_event('get-messages', handle_get_messages, namespace=namespace)
    socketio.on_event('send-message', handle_send_message, namespace=namespace)
    socketio.on_event('submit-answer', handle_submit_answer, namespace=namespace)
    socketio.on_event('submit-clue-answer', handle_submit_answer, namespace=namespace)
    socketio.on_event('request-hint', handle_request_hint, namespace=namespace)
    socketio.on_event('start-game', handle_start_game, namespace=namespace)
    socketio.on_event('typing', handle_typing, namespace=namespace)
    socketio.on_event('send-emote', handle_send_emote, namespace=namespace)
