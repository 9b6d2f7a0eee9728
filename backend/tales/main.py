from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import IntegrityError
from tales import db
from tales.errors import ConflictError, NotFoundError, ValidationError, require_field
from tales.models import User, utcnow

main = Blueprint('main', __name__)


def _credentials():
    data = request.get_json(silent=True) or {}
    return require_field(data, 'username').strip(), require_field(data, 'password')


@main.route('/register', methods=['POST', 'OPTIONS'])
def register():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    username, password = _credentials()
    if User.query.filter_by(username=username).first():
        raise ConflictError('Username already exists', {'field': 'username'})

    new_user = User(username=username)
    new_user.set_password(password)
    db.session.add(new_user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Username already exists', {'field': 'username'})
    login_user(new_user)
    return jsonify({"success": True, "user": new_user.to_dict()}), 201


@main.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    username, password = _credentials()
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise NotFoundError('User not found')
    if not user.check_password(password):
        raise ValidationError('Invalid password', field='password')
    user.last_login = utcnow()
    db.session.commit()
    login_user(user, remember=True)
    return jsonify({"success": True, "user": user.to_dict()})


@main.route('/check_login', methods=['GET', 'OPTIONS'])
def check_login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200

    @login_required
    def protected_check():
        return jsonify({"success": True, "user": current_user.to_dict()})

    return protected_check()


@main.route('/logout', methods=['POST', 'OPTIONS'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})
