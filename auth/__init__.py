from auth.auth import auth_bp, token_required, get_auth_service, request_data  # noqa
from auth.service import AuthService, TOKEN_COOKIE  # noqa
