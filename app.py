import logging
from datetime import timedelta

from flask import Flask, jsonify
from flask_cors import CORS

from auth import AuthService, auth_bp
from config import Config
from errors import register_error_handlers
from logging_config import configure_logging
from models import Store, StoreConfig
from profiles import ProfileService, profile_bp

logger = logging.getLogger(__name__)


def create_app(config=Config, store=None):
    configure_logging(config.LOG_LEVEL)

    app = Flask(__name__)
    app.config.from_object(config)
    CORS(app, origins=config.CORS_ORIGINS, supports_credentials=True)

    # Raises when the database is unreachable, which stops the process at boot
    store = (store or Store(StoreConfig.from_config(config))).connect()
    app.extensions['store'] = store
    app.extensions['auth_service'] = AuthService(
        store,
        secret_key=config.SECRET_KEY,
        token_ttl=timedelta(hours=config.TOKEN_TTL_HOURS),
        production=config.PRODUCTION,
    )
    app.extensions['profile_service'] = ProfileService(store)

    app.register_blueprint(auth_bp, url_prefix='/user')
    app.register_blueprint(profile_bp, url_prefix='/user')
    register_error_handlers(app)

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'}), 200

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=not Config.PRODUCTION)
