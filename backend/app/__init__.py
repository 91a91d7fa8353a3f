from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

DEFAULT_MENU = [
    ('1', 'Cà phê đen', 20000, 'drink'),
    ('2', 'Cà phê sữa', 25000, 'drink'),
    ('3', 'Nước suối', 10000, 'drink'),
    ('4', 'Sting dâu', 15000, 'drink'),
    ('5', 'Redbull', 20000, 'drink'),
    ('6', 'Trà đá', 5000, 'drink'),
    ('7', 'Mì trứng', 30000, 'food'),
    ('8', 'Mì bò', 40000, 'food'),
    ('9', 'Cơm chiên', 45000, 'food'),
    ('10', 'Thuốc lá (gói)', 35000, 'other'),
]


def seed_club(flask_app) -> None:
    """Seed pricing, menu and a row of tables if they are missing."""
    from app.models import BilliardTable, MenuItem
    from app.services.club.pricing_store import seed_default_pricing

    seed_default_pricing()
    for item_id, name, price, category in DEFAULT_MENU:
        if MenuItem.query.get(item_id) is None:
            db.session.add(MenuItem(id=item_id, name=name, price=price, category=category))
    if BilliardTable.query.count() == 0:
        pattern = flask_app.config.get('TABLE_NAME_PATTERN', 'Bàn')
        game_type = flask_app.config.get('DEFAULT_GAME_TYPE', 'CAROM')
        for n in range(1, int(flask_app.config.get('TABLE_COUNT', 6)) + 1):
            db.session.add(BilliardTable(name=f"{pattern} {n:02d}", game_type=game_type))
    db.session.commit()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from app.api.club import club
    flask_app.register_blueprint(club, url_prefix='/api/club')

    from app.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @flask_app.route('/')
    def index():
        return {'message': 'BidaPro club server'}

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            seed_club(flask_app)
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
