import logging
from datetime import datetime, timezone

from flask import Flask, jsonify
from flask_cors import CORS

from makerhub.config import Config, DatabaseSettings

logger = logging.getLogger(__name__)


def create_app(repository=None, runner=None, config_overrides=None):
    """Create the Flask application.

    ``repository``/``runner`` default to the configured data layer; tests pass
    fakes. A missing database configuration fails here, at boot.
    """
    from makerhub.services import AsyncRunner, DirectoryRepository

    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # CORS: use explicit allowlist in production when provided.
    cors_origins = app.config.get('CORS_ALLOWED_ORIGINS', [])
    if cors_origins:
        CORS(app, resources={r"/api/*": {"origins": cors_origins}})
    else:
        CORS(app, resources={r"/api/*": {"origins": "*"}})

    if repository is None:
        repository = DirectoryRepository.from_settings(DatabaseSettings.from_env())
    if runner is None:
        runner = AsyncRunner(default_timeout=app.config.get('REQUEST_TIMEOUT_SECONDS'))

    app.extensions['makerhub'] = {
        'repository': repository,
        'runner': runner,
    }

    @app.route('/api/health', methods=['GET'])
    def health_check():
        return jsonify({
            'status': 'ok',
            'backend': repository.backend_name,
            'timestamp': datetime.now(timezone.utc).isoformat(),
        })

    # 注册蓝图
    from makerhub.routes.admin import admin_bp
    from makerhub.routes.categories import categories_bp
    from makerhub.routes.developers import developers_bp
    from makerhub.routes.products import products_bp
    from makerhub.routes.search import search_bp

    prefix = app.config['API_PREFIX']
    app.register_blueprint(products_bp, url_prefix=f'{prefix}/products')
    app.register_blueprint(categories_bp, url_prefix=f'{prefix}/categories')
    app.register_blueprint(developers_bp, url_prefix=f'{prefix}/developers')
    app.register_blueprint(search_bp, url_prefix=f'{prefix}/search')
    app.register_blueprint(admin_bp, url_prefix=f'{prefix}/admin')

    logger.info("MakerHub API ready (backend=%s)", repository.backend_name)
    return app


def shutdown_app(app) -> None:
    """Close the data layer and stop the runner loop."""
    state = app.extensions.get('makerhub')
    if not state:
        return
    runner = state['runner']
    try:
        runner.run(state['repository'].close())
    finally:
        runner.shutdown()
