from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Store, change feed, aggregator and turn engine for this app
    from gameshow.services.registry import init_services
    services = init_services(flask_app)

    # Import and register blueprints here
    from gameshow.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from gameshow.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    # Socket.IO handlers and the feed -> socket relay
    from gameshow.socketio_events import register_socketio_handlers
    register_socketio_handlers(
        services,
        question_seconds=int(flask_app.config.get('QUESTION_TIMER_SEC', 30)),
        testing=flask_app.config.get('TESTING', False),
    )

    from gameshow.cli import game_cli
    flask_app.cli.add_command(game_cli)

    return flask_app
