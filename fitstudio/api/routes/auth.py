from flask import Blueprint, request, jsonify, current_app
from fitstudio.models import User
from werkzeug.security import check_password_hash
import jwt
from datetime import datetime, timedelta

auth_bp = Blueprint('auth', __name__)

@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()

    if not user or not user.is_active or not user.password_hash \
            or not check_password_hash(user.password_hash, data.get('password') or ''):
        return jsonify({'message': 'Invalid credentials'}), 401

    token = jwt.encode({
        'user_id': user.id,
        'exp': datetime.utcnow() + timedelta(hours=current_app.config['TOKEN_EXPIRY_HOURS'])
    }, current_app.config['SECRET_KEY'], algorithm="HS256")

    return jsonify({'token': token, 'username': user.username, 'role': user.role})
