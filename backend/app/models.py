from app import db, bcrypt
import json
import time

# Table statuses
STATUS_AVAILABLE = 'AVAILABLE'
STATUS_OCCUPIED = 'OCCUPIED'
STATUS_MAINTENANCE = 'MAINTENANCE'
STATUS_LOCKED = 'LOCKED'


def now_ms() -> int:
    return int(time.time() * 1000)


class BaseRate(db.Model):
    __tablename__ = 'base_rate'
    game_type = db.Column(db.String(16), primary_key=True)
    rate = db.Column(db.Integer, nullable=False)


class TimeSlotRow(db.Model):
    __tablename__ = 'time_slot'
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    start_hour = db.Column(db.Integer, nullable=False)
    end_hour = db.Column(db.Integer, nullable=False)
    multiplier = db.Column(db.Float, nullable=False, default=1.0)
    position = db.Column(db.Integer, nullable=False, default=0)  # match order

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'start_hour': self.start_hour,
            'end_hour': self.end_hour,
            'multiplier': self.multiplier,
        }


class MenuItem(db.Model):
    __tablename__ = 'menu_item'
    id = db.Column(db.String(32), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(16), nullable=False, default='other')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'category': self.category,
        }


class BilliardTable(db.Model):
    __tablename__ = 'billiard_table'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    game_type = db.Column(db.String(16), nullable=False, default='CAROM')
    status = db.Column(db.String(16), nullable=False, default=STATUS_AVAILABLE)
    start_time = db.Column(db.BigInteger, nullable=True)  # epoch ms while occupied
    camera_url = db.Column(db.String(256), nullable=True)
    camera_status = db.Column(db.String(16), nullable=True)  # online, offline
    password_hash = db.Column(db.String(128), nullable=True)
    orders = db.relationship('TableOrder', back_populates='table', order_by='TableOrder.id',
                             cascade='all, delete-orphan')

    def set_password(self, password):
        if password:
            self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')
        else:
            self.password_hash = None

    def check_password(self, password):
        if not self.password_hash:
            return True
        return bool(password) and bcrypt.check_password_hash(self.password_hash, password)

    def set_camera(self, url):
        self.camera_url = url or None
        # A new URL is assumed reachable until the camera reports otherwise
        self.camera_status = 'online' if url else None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'game_type': self.game_type,
            'status': self.status,
            'start_time': self.start_time,
            'camera_url': self.camera_url,
            'camera_status': self.camera_status,
            'has_password': self.password_hash is not None,
            'orders': [o.to_dict() for o in self.orders],
        }


class TableOrder(db.Model):
    __tablename__ = 'table_order'
    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey('billiard_table.id'), nullable=False)
    menu_item_id = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(128), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    table = db.relationship('BilliardTable', back_populates='orders')

    def to_dict(self):
        return {
            'menu_item_id': self.menu_item_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
        }


class Bill(db.Model):
    __tablename__ = 'bill'
    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, nullable=False, index=True)
    table_name = db.Column(db.String(64), nullable=False)
    game_type = db.Column(db.String(16), nullable=False)
    start_time = db.Column(db.BigInteger, nullable=False)
    end_time = db.Column(db.BigInteger, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    hourly_rate = db.Column(db.Float, nullable=False)
    session_cost = db.Column(db.Integer, nullable=False)
    service_total = db.Column(db.Integer, nullable=False)
    discount_percent = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False)
    items = db.Column(db.Text, nullable=True)  # JSON-encoded order lines

    def to_dict(self):
        return {
            'id': self.id,
            'table_id': self.table_id,
            'table_name': self.table_name,
            'game_type': self.game_type,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'duration_minutes': self.duration_minutes,
            'hourly_rate': self.hourly_rate,
            'session_cost': self.session_cost,
            'service_total': self.service_total,
            'discount_percent': self.discount_percent,
            'total_amount': self.total_amount,
            'items': json.loads(self.items) if self.items else [],
        }
