from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    @flask_app.route('/')
    def index():
        return jsonify({'message': 'Welcome to the mole arcade server!'})

    from molearcade.api.whack import whack
    flask_app.register_blueprint(whack, url_prefix='/api/whack')

    # Register Socket.IO event handlers
    # Importing here ensures the handlers bind to the initialized socketio instance
    try:
        from molearcade.socketio_events import register_socketio_handlers
        register_socketio_handlers(testing=flask_app.config.get('TESTING', False))
    except Exception as exc:
        flask_app.logger.warning(f"SocketIO events not loaded: {exc}")

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database."""
        import molearcade.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
