from functools import wraps
from flask import request, jsonify, current_app, g
import jwt
from fitstudio.extensions import db
from fitstudio.models.user import User

def token_required(f):
    """
    Resolve the bearer token to an active user.

    The view receives the user as its first argument; the user's Actor
    (role capabilities resolved once) is stored on `g.actor`.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        token = None
        if 'Authorization' in request.headers:
            # Bearer <token>
            auth_header = request.headers['Authorization']
            if auth_header.startswith("Bearer "):
                token = auth_header.split(" ")[1]

        if not token:
            return jsonify({'message': 'Token is missing!'}), 401

        try:
            data = jwt.decode(token, current_app.config['SECRET_KEY'], algorithms=["HS256"])
        except jwt.ExpiredSignatureError:
            return jsonify({'message': 'Token expired', 'code': 'TOKEN_EXPIRED'}), 401
        except jwt.InvalidTokenError as e:
            return jsonify({'message': 'Token is invalid!', 'error': str(e)}), 401

        current_user = db.session.get(User, data['user_id']) if data.get('user_id') else None
        if not current_user or not current_user.is_active:
            return jsonify({'message': 'User not found or inactive', 'code': 'USER_NOT_FOUND'}), 401

        g.actor = current_user.to_actor()
        return f(current_user, *args, **kwargs)

    return decorated

def capability_required(capability):
    """Use below @token_required: @token_required \n @capability_required('admin')."""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if not g.actor.can(capability):
                return jsonify({'message': 'Insufficient permissions', 'code': 'FORBIDDEN'}), 403
            return f(*args, **kwargs)
        return decorated
    return decorator
