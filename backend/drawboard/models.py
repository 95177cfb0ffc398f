from drawboard import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone


def utcnow():
    # Stored naive; every timestamp column is UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat().replace('+00:00', 'Z')


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default='viewer')  # admin, viewer

    @property
    def is_admin(self):
        return self.role == 'admin'

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
        }


GAME_STATUSES = ('active', 'inactive', 'completed', 'suspended')


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    nick_name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(16), nullable=False, default='active')
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    result_time = db.Column(db.String(8), nullable=True)  # display only, "hh:mm AM/PM"
    created_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    created_by = db.relationship('User')
    results = db.relationship('PublishedResult', back_populates='game', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'nick_name': self.nick_name,
            'description': self.description,
            'status': self.status,
            'is_active': self.is_active,
            'result_time': self.result_time,
            'created_by': self.created_by.username if self.created_by else None,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class PublishedResult(db.Model):
    __tablename__ = 'published_result'
    __table_args__ = (
        # One official result per game per game day
        db.UniqueConstraint('game_id', 'game_day', name='uq_published_result_game_day'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    game_day = db.Column(db.Date, nullable=False, index=True)
    value = db.Column(db.String(16), nullable=False)
    published_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    published_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    game = db.relationship('Game', back_populates='results')
    published_by = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'game_name': self.game.nick_name if self.game else None,
            'game_day': self.game_day.isoformat(),
            'value': self.value,
            'published_at': _iso(self.published_at),
            'published_by': self.published_by.username if self.published_by else None,
        }
