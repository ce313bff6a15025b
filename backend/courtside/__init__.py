from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from courtside.main import main
    flask_app.register_blueprint(main)

    from courtside.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from courtside.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('seed-demo')
    def seed_demo_command():
        """Drops, recreates, and seeds the database with a demo game."""
        from courtside.services.tracking.tracker import create_game
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            game = create_game(
                'Team A',
                'Team B',
                [{'name': f'Player {i}', 'team': 'Team A'} for i in range(1, 6)]
                + [{'name': f'Player {i}', 'team': 'Team B'} for i in range(6, 11)],
                initial_possession='Team A',
            )
            print(f'Database has been reset and seeded! Demo game id={game.id}')

    flask_app.cli.add_command(seed_demo_command)

    return flask_app
