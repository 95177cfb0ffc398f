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
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
# always_connect lets the connect handler push the acknowledgement frame
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None, always_connect=True)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One clock, bus and gateway per application
    from drawboard.services.results.clock import GameDayClock
    from drawboard.realtime import BroadcastGateway, EventBus
    bus = EventBus()
    flask_app.extensions['game_day_clock'] = GameDayClock.from_config(flask_app.config)
    flask_app.extensions['event_bus'] = bus
    flask_app.extensions['broadcast_gateway'] = BroadcastGateway(
        bus,
        keepalive_interval=flask_app.config.get('KEEPALIVE_INTERVAL_SEC', 30),
        spawn=socketio.start_background_task,
    )

    from drawboard.errors import register_error_handlers
    register_error_handlers(flask_app)

    # Import and register blueprints here
    from drawboard.main import main
    flask_app.register_blueprint(main)

    from drawboard.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from drawboard.api.results import results
    flask_app.register_blueprint(results, url_prefix='/api/results')

    from drawboard.api.events import events
    flask_app.register_blueprint(events, url_prefix='/api/events')

    # Register Socket.IO event handlers on the initialized socketio instance
    from drawboard.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Flask-Login user loader
    from drawboard.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Access denied'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with an admin user."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            admin = User(username='admin', role='admin')
            admin.set_password('password')
            db.session.add(admin)
            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('create-admin')
    @click.argument('username')
    @click.argument('password')
    def create_admin_command(username, password):
        """Creates an administrator, or promotes an existing user."""
        with flask_app.app_context():
            user = User.query.filter_by(username=username).first()
            if user is None:
                user = User(username=username)
            user.role = 'admin'
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            print(f'Administrator {username} is ready.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(create_admin_command)

    return flask_app
