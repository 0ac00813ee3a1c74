from flask import Flask
from bhishak.extensions import db, bcrypt, migrate, jwt, limiter, cors
from bhishak.utils.encryption_util import encryptor
from bhishak.utils.error_handlers import register_error_handlers, register_jwt_handlers
from bhishak.commands import register_commands
from config import config


def create_app(config_name='default'):
    app = Flask(__name__)
    config_class = config[config_name]
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    bcrypt.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)
    cors.init_app(
        app,
        origins=app.config['ALLOWED_ORIGINS'],
        supports_credentials=True,
        allow_headers=['Content-Type', 'Authorization', 'X-Requested-With'],
        methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
    )

    # Initialize custom utilities
    encryptor.init_app(app)

    # Initialize app with config
    config_class.init_app(app)

    # Register blueprints
    from bhishak.api import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    @app.route('/health')
    def health():
        return {'success': True, 'status': 'ok'}, 200

    # Register error handlers and commands
    register_error_handlers(app)
    register_jwt_handlers()
    register_commands(app)

    return app
