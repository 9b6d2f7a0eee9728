from flask import Blueprint, jsonify, request, current_app
from tales import db
from tales.errors import NotFoundError, ValidationError
from tales.models import Gift, User
from tales.services import get_services
from tales.services import progress

game = Blueprint('game', __name__)


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f'{name} must be an integer', field=name)
    if value < 1:
        raise ValidationError(f'{name} must be positive', field=name)
    return value


@game.route('/inventory/<int:user_id>', methods=['GET'])
def get_inventory(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')
    items = get_services().rewards.inventory(user_id)
    return jsonify({'user_id': user_id, 'items': [i.to_dict() for i in items]})


@game.route('/gifts', methods=['GET'])
def list_gifts():
    gifts = Gift.query.order_by(Gift.value, Gift.id).all()
    return jsonify([g.to_dict() for g in gifts])


@game.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    limit = _int_arg('limit', int(current_app.config.get('LEADERBOARD_LIMIT', 10)))
    by = request.args.get('by', 'score')
    return jsonify(progress.leaderboard(limit=limit, by=by))


@game.route('/active-players', methods=['GET'])
def get_active_players():
    presence = get_services().presence
    return jsonify({'count': presence.count(), 'users': presence.online()})


@game.route('/stats', methods=['GET'])
def get_stats():
    return jsonify(progress.stats(active_players=get_services().presence.count()))


@game.route('/sessions/<string:session_id>', methods=['GET'])
def get_session(session_id):
    return jsonify(get_services().sessions.snapshot(session_id))


@game.route('/sessions/<string:session_id>/messages', methods=['GET'])
def get_session_messages(session_id):
    services = get_services()
    services.sessions.get(session_id)
    limit = _int_arg('limit', services.messages.history_limit)
    history = services.messages.recent_history(session_id, limit=limit)
    return jsonify([m.to_dict() for m in history])
