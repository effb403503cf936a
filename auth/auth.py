import logging
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from auth.service import TOKEN_COOKIE

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def get_auth_service():
    return current_app.extensions['auth_service']


def request_data():
    # Missing or malformed JSON is treated as an empty body and fails validation
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# Token verification decorator
def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        current_user = get_auth_service().verify(request.cookies.get(TOKEN_COOKIE))
        return f(current_user, *args, **kwargs)
    return decorated


@auth_bp.route('/register', methods=['POST'])
def register():
    data = request_data()
    user = get_auth_service().register(
        email=data.get('email'),
        username=data.get('username'),
        password=data.get('password'),
    )
    return jsonify({
        "message": "User registered successfully",
        "user": user,
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request_data()
    service = get_auth_service()
    token, user = service.login(data.get('username'), data.get('password'))

    response = jsonify({
        "message": "Login successful",
        "user": user,
    })
    response.set_cookie(TOKEN_COOKIE, token, max_age=service.cookie_max_age, **service.cookie_settings())
    return response, 200


@auth_bp.route('/verify', methods=['GET'])
@token_required
def verify(current_user):
    return jsonify({"user": current_user}), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    response = jsonify({"message": "Logged out successfully"})
    response.delete_cookie(TOKEN_COOKIE, **get_auth_service().cookie_settings())
    return response, 200
