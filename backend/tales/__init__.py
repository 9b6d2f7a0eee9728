from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

SOCKET_NAMESPACE = '/ws'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Process-scoped services (session cache, presence, host, grader)
    from tales.services import GameServices
    flask_app.extensions['tales'] = GameServices(flask_app, socketio, namespace=SOCKET_NAMESPACE)

    from tales.errors import register_error_handlers
    register_error_handlers(flask_app)

    from tales.main import main
    flask_app.register_blueprint(main, url_prefix='/api')

    from tales.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api')

    from tales.api.levels import levels
    flask_app.register_blueprint(levels, url_prefix='/api')

    from tales.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=SOCKET_NAMESPACE)

    from tales.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @flask_app.route('/health')
    def health():
        return jsonify({'status': 'ok', 'service': 'tales'})

    @click.command('seed')
    def seed_command():
        """Seeds gifts, host replies and levels where their tables are empty."""
        from tales.seed import seed_reference_data
        with flask_app.app_context():
            created = seed_reference_data()
            print(f'Seeded: {created}')

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from tales.seed import seed_reference_data
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            seed_reference_data()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(seed_command)
    flask_app.cli.add_command(db_reset_command)

    return flask_app
