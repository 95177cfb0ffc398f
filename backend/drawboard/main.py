from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from drawboard.models import User

main = Blueprint('main', __name__)


def caller_is_privileged() -> bool:
    """The only authorization fact the publish path consumes."""
    return bool(current_user.is_authenticated and getattr(current_user, 'is_admin', False))


@main.route('/')
def index():
    return jsonify({'message': 'Daily draw board is running'})

@main.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and data.get('password') and user.check_password(data['password']):
        login_user(user)
        current_app.logger.info(f"[login] user={user.username} role={user.role}")
        return jsonify({"success": True, "user": user.to_dict()})
    return jsonify({"success": False, "message": "Invalid credentials"}), 401

@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({"success": True, "user": current_user.to_dict()})

@main.route('/logout', methods=['POST', 'OPTIONS'])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})
