import json

from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError
from tales import db
from tales.errors import ConflictError, ForbiddenError, ValidationError, require_field
from tales.models import Level
from tales.services import get_services
from tales.services import progress

levels = Blueprint('levels', __name__)


@levels.route('/levels', methods=['GET'])
def list_levels():
    rows = Level.query.order_by(Level.level_id).all()
    return jsonify([lv.to_dict() for lv in rows])


@levels.route('/levels', methods=['POST'])
@login_required
def add_level():
    if current_user.username not in current_app.config.get('ADMIN_USERNAMES', []):
        raise ForbiddenError('Only admins may add levels')
    data = request.get_json(silent=True) or {}
    level_id = require_field(data, 'level_id', int)
    title = require_field(data, 'title')
    description = require_field(data, 'description')
    correct = require_field(data, 'correct').strip()
    options = data.get('options') or []
    if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
        raise ValidationError('options must be a list of strings', field='options')

    if Level.query.filter_by(level_id=level_id).first():
        raise ConflictError(f'Level {level_id} already exists', {'field': 'level_id'})
    level = Level(
        level_id=level_id,
        title=title,
        description=description,
        options=json.dumps(options),
        correct=correct,
        unlocked=False,
        created_by=current_user.username,
    )
    db.session.add(level)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f'Level {level_id} already exists', {'field': 'level_id'})

    services = get_services()
    # A level-table grader must pick up the new level
    services.reload_grader()
    current_app.logger.info(f"[level-added] level={level_id} by={current_user.username}")
    services.broadcaster.announce('level-added', level.to_dict())
    return jsonify({'success': True, 'level': level.to_dict()}), 201


@levels.route('/progress', methods=['POST'])
def post_progress():
    data = request.get_json(silent=True) or {}
    username = require_field(data, 'username')
    level_id = require_field(data, 'level_id', int)
    user = progress.record_level_progress(
        username,
        level_id,
        bool(data.get('completed')),
        score=data.get('score'),
        gems=data.get('gems'),
    )
    return jsonify({
        'success': True,
        'level': user.level,
        'gems': user.gems,
        'score': user.experience,
        'completed_levels': progress.completed_levels(user.id),
    })
