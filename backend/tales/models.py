from tales import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone
import json
import uuid

MESSAGE_TYPES = ('text', 'hint', 'gift', 'system', 'emote')


def utcnow():
    """Naive UTC timestamp; SQLite drops tzinfo so we never store it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


def generate_session_id():
    return uuid.uuid4().hex


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)
    experience = db.Column(db.Integer, default=0, nullable=False)
    gems = db.Column(db.Integer, default=100, nullable=False)
    clues_solved = db.Column(db.Integer, default=0, nullable=False)
    online = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    last_login = db.Column(db.DateTime, default=utcnow)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'level': self.level,
            'experience': self.experience,
            'gems': self.gems,
            'clues_solved': self.clues_solved,
            'online': self.online,
        }


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.String(64), primary_key=True, default=generate_session_id)
    status = db.Column(db.String(16), default='waiting', nullable=False)  # waiting, active, completed
    current_clue = db.Column(db.Integer, default=1, nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    hints_used = db.Column(db.Integer, default=0, nullable=False)
    player_name = db.Column(db.String(64), nullable=True)
    host_name = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    messages = db.relationship('Message', back_populates='session', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'status': self.status,
            'current_clue': self.current_clue,
            'score': self.score,
            'hints_used': self.hints_used,
            'player_name': self.player_name,
            'host_name': self.host_name,
            'created_at': _iso(self.created_at),
            'started_at': _iso(self.started_at),
            'completed_at': _iso(self.completed_at),
        }


class Message(db.Model):
    __tablename__ = 'message'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(64), db.ForeignKey('game_session.id'), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    username = db.Column(db.String(64), nullable=False)
    body = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(16), default='text', nullable=False)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    reactions = db.Column(db.Text, nullable=True)  # JSON-encoded list
    read = db.Column(db.Boolean, default=False, nullable=False)
    session = db.relationship('GameSession', back_populates='messages')

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'sender_id': self.sender_id,
            'username': self.username,
            'message': self.body,
            'type': self.type,
            'timestamp': _iso(self.timestamp),
            'reactions': json.loads(self.reactions) if self.reactions else [],
            'read': self.read,
        }


class Gift(db.Model):
    __tablename__ = 'gift'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False, index=True)
    icon = db.Column(db.String(16), nullable=False)
    rarity = db.Column(db.String(16), default='common', nullable=False)
    value = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'icon': self.icon,
            'rarity': self.rarity,
            'value': self.value,
        }


class InventoryItem(db.Model):
    __tablename__ = 'inventory_item'
    __table_args__ = (db.UniqueConstraint('user_id', 'gift_id', name='uq_inventory_user_gift'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    gift_id = db.Column(db.Integer, db.ForeignKey('gift.id'), nullable=False)
    quantity = db.Column(db.Integer, default=1, nullable=False)
    acquired_at = db.Column(db.DateTime, default=utcnow)
    gift = db.relationship('Gift')

    def to_dict(self):
        return {
            'gift': self.gift.to_dict() if self.gift else None,
            'quantity': self.quantity,
            'acquired_at': _iso(self.acquired_at),
        }


class HostReply(db.Model):
    __tablename__ = 'host_reply'
    id = db.Column(db.Integer, primary_key=True)
    position = db.Column(db.Integer, nullable=False, index=True)
    keyword = db.Column(db.String(64), nullable=False)
    response = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(32), default='general', nullable=False)
    emotion = db.Column(db.String(32), default='neutral', nullable=False)
    reward = db.Column(db.String(64), nullable=True)  # Gift.name


class Level(db.Model):
    __tablename__ = 'level'
    id = db.Column(db.Integer, primary_key=True)
    level_id = db.Column(db.Integer, unique=True, nullable=False, index=True)
    title = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=False)
    options = db.Column(db.Text, nullable=True)  # JSON-encoded list
    correct = db.Column(db.String(64), nullable=False)
    unlocked = db.Column(db.Boolean, default=False, nullable=False)
    created_by = db.Column(db.String(64), default='system')
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self, include_answer=False):
        data = {
            'level_id': self.level_id,
            'title': self.title,
            'description': self.description,
            'options': json.loads(self.options) if self.options else [],
            'unlocked': self.unlocked,
            'created_by': self.created_by,
            'created_at': _iso(self.created_at),
        }
        if include_answer:
            data['correct'] = self.correct
        return data


class CompletedLevel(db.Model):
    __tablename__ = 'completed_level'
    __table_args__ = (db.UniqueConstraint('user_id', 'level_id', name='uq_completed_user_level'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    level_id = db.Column(db.Integer, nullable=False)
    completed_at = db.Column(db.DateTime, default=utcnow)
