import logging
from datetime import datetime, timedelta, timezone

import jwt
from email_validator import EmailNotValidError, validate_email

from errors import AuthenticationError, ConflictError, InvalidCredentialsError, ValidationError
from models import User

logger = logging.getLogger(__name__)

TOKEN_COOKIE = 'token'
TOKEN_ALGORITHM = 'HS256'

MIN_USERNAME_LENGTH = 3
MIN_EMAIL_LENGTH = 13
MIN_PASSWORD_LENGTH = 5


def _clean(value):
    return value.strip() if isinstance(value, str) else ''


class AuthService:
    def __init__(self, store, secret_key, token_ttl=timedelta(hours=24), production=False):
        self.store = store
        self.secret_key = secret_key
        self.token_ttl = token_ttl
        self.production = production

    def register(self, email, username, password):
        email, username, password = _clean(email), _clean(username), _clean(password)

        errors = []
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            errors.append({'field': 'email', 'message': f'Invalid email address: {e}'})
        if len(email) < MIN_EMAIL_LENGTH:
            errors.append({
                'field': 'email',
                'message': f'Email must be at least {MIN_EMAIL_LENGTH} characters long',
            })
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.append({
                'field': 'password',
                'message': f'Password must be at least {MIN_PASSWORD_LENGTH} characters long',
            })
        if len(username) < MIN_USERNAME_LENGTH:
            errors.append({
                'field': 'username',
                'message': f'Username must be at least {MIN_USERNAME_LENGTH} characters long',
            })
        if errors:
            raise ValidationError(errors)

        new_user = User(email=email.lower(), username=username.lower())
        new_user.set_password(password)

        # The unique constraints decide duplicates, no lookup beforehand
        with self.store.session_scope(conflict_message='Email or username already exists') as session:
            session.add(new_user)

        logger.info("Registered user %s", new_user.username)
        return {'username': new_user.username, 'email': new_user.email}

    def login(self, username, password):
        username = _clean(username)
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(
                [{'field': 'username', 'message': 'Username is required'}],
                message='Username is required',
            )
        if not isinstance(password, str) or not password:
            raise ValidationError(
                [{'field': 'password', 'message': 'Password is required'}],
                message='Password is required',
            )

        with self.store.session_scope() as session:
            user = session.query(User).filter_by(username=username.lower()).first()

        # Same error for unknown user and wrong password
        if not user or not user.check_password(password):
            logger.info("Failed login for %s", username.lower())
            raise InvalidCredentialsError()

        token = self.issue_token(user)
        logger.info("User %s logged in", user.username)
        return token, {'username': user.username, 'email': user.email}

    def issue_token(self, user):
        now = datetime.now(timezone.utc)
        return jwt.encode(
            {
                'user_id': user.id,
                'email': user.email,
                'username': user.username,
                'iat': now,
                'exp': now + self.token_ttl,
            },
            self.secret_key,
            algorithm=TOKEN_ALGORITHM,
        )

    def verify(self, token):
        if not token:
            raise AuthenticationError('Not authenticated')
        try:
            return jwt.decode(token, self.secret_key, algorithms=[TOKEN_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError('Token expired')
        except jwt.InvalidTokenError:
            raise AuthenticationError('Invalid token')

    def cookie_settings(self):
        return {
            'httponly': True,
            'secure': self.production,
            'samesite': 'None' if self.production else 'Strict',
        }

    @property
    def cookie_max_age(self):
        return int(self.token_ttl.total_seconds())
