import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///courses.db')
    SQLALCHEMY_ECHO = os.environ.get('SQLALCHEMY_ECHO', '0') == '1'

    # Session cookie
    TOKEN_TTL_HOURS = int(os.environ.get('TOKEN_TTL_HOURS', '24'))
    PRODUCTION = os.environ.get('APP_ENV', 'development') == 'production'

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get('CORS_ORIGINS', 'http://localhost:3000').split(',')
        if origin.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key-0123456789abcdef'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    PRODUCTION = False
    LOG_LEVEL = 'WARNING'
