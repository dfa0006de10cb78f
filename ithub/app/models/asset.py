# app/models/asset.py
from datetime import date
from enum import Enum
from sqlalchemy.orm import declared_attr, validates
from ithub.app import db
from ithub.app.validation import get_ip_range, is_valid_ip, is_valid_subnet_mask
from .asset_history import AssetKind
from .user import utcnow

class PcStatus(Enum):
    ASSIGNED = "assigned"
    IN_STOCK = "in_stock"
    REPAIR = "repair"
    DISPOSED = "disposed"

class ServerStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    DISPOSED = "disposed"

class PrinterStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    REPAIR = "repair"
    DISPOSED = "disposed"

class SoftwareStatus(Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    DISPOSED = "disposed"

def match_enum(enum_cls, value, label):
    """Standardize ``value`` to one of the ``enum_cls`` values, case-insensitively."""
    if isinstance(value, enum_cls):
        return value.value
    try:
        return next(m for m in enum_cls if m.value.lower() == str(value).strip().lower()).value
    except StopIteration:
        raise ValueError(f"Invalid {label}: {value}")

class TrackedAsset:
    """Bookkeeping columns and serialization shared by every asset table.

    Subclasses describe themselves through a few class attributes which the
    asset services and list endpoints read:

    - ``KIND``: the :class:`AssetKind` recorded in the history log
    - ``REQUIRED_FIELDS``: must be present and non-empty on create
    - ``EDITABLE_FIELDS``: accepted from create/update payloads
    - ``SEARCH_FIELDS``: matched by the ``search`` list parameter
    - ``FILTER_FIELDS``: exact-match list parameters
    """
    KIND = None
    DISPOSED_STATUS = 'disposed'
    REQUIRED_FIELDS = ()
    EDITABLE_FIELDS = ()
    SEARCH_FIELDS = ()
    FILTER_FIELDS = ('status',)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @declared_attr
    def created_by(cls):
        return db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'))

    @declared_attr
    def updated_by(cls):
        return db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'))

    @classmethod
    def order_column(cls):
        return cls.created_at.desc()

    def is_active_asset(self):
        return self.status != self.DISPOSED_STATUS

    def check(self):
        """Cross-field validation run before every write."""

    def to_dict(self):
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, date):
                value = value.isoformat()
            data[column.name] = value
        return data

    def __repr__(self):
        return f'<{type(self).__name__} {self.id} ({self.KIND.value})>'

class Pc(TrackedAsset, db.Model):
    __tablename__ = 'pcs'
    KIND = AssetKind.PC
    REQUIRED_FIELDS = ('asset_number', 'model_name')
    EDITABLE_FIELDS = ('asset_number', 'user_name', 'department', 'model_name', 'serial_number',
                       'purchase_date', 'cpu', 'ram', 'disk', 'status', 'notes')
    SEARCH_FIELDS = ('asset_number', 'model_name', 'user_name', 'serial_number')
    FILTER_FIELDS = ('status', 'department')

    id = db.Column(db.Integer, primary_key=True)
    asset_number = db.Column(db.String(50), unique=True, nullable=False)
    user_name = db.Column(db.String(100))
    department = db.Column(db.String(100))
    model_name = db.Column(db.String(200), nullable=False)
    serial_number = db.Column(db.String(100), unique=True)
    purchase_date = db.Column(db.Date)
    cpu = db.Column(db.String(100))
    ram = db.Column(db.String(50))
    disk = db.Column(db.String(100))
    status = db.Column(db.String(20), nullable=False, default=PcStatus.IN_STOCK.value, index=True)
    notes = db.Column(db.Text)

    @validates('status')
    def validate_status(self, key, value):
        return match_enum(PcStatus, value, 'status')

class Server(TrackedAsset, db.Model):
    __tablename__ = 'servers'
    KIND = AssetKind.SERVER
    REQUIRED_FIELDS = ('asset_number', 'hostname')
    EDITABLE_FIELDS = ('asset_number', 'rack_location', 'hostname', 'os_version', 'ip_address', 'purpose',
                       'warranty_expiry', 'cpu', 'ram', 'disk', 'status', 'notes')
    SEARCH_FIELDS = ('asset_number', 'hostname', 'ip_address', 'purpose')

    id = db.Column(db.Integer, primary_key=True)
    asset_number = db.Column(db.String(50), unique=True, nullable=False)
    rack_location = db.Column(db.String(100))
    hostname = db.Column(db.String(100), nullable=False)
    os_version = db.Column(db.String(100))
    ip_address = db.Column(db.String(45))
    purpose = db.Column(db.String(200))
    warranty_expiry = db.Column(db.Date)
    cpu = db.Column(db.String(100))
    ram = db.Column(db.String(50))
    disk = db.Column(db.String(100))
    status = db.Column(db.String(20), nullable=False, default=ServerStatus.ACTIVE.value, index=True)
    notes = db.Column(db.Text)

    @validates('status')
    def validate_status(self, key, value):
        return match_enum(ServerStatus, value, 'status')

    @validates('ip_address')
    def validate_ip(self, key, value):
        if value and not is_valid_ip(value):
            raise ValueError(f"Invalid IP address: {value}")
        return value

class NetworkIp(TrackedAsset, db.Model):
    """An allocated IPv4 address. Retired with ``is_active`` rather than a status."""
    __tablename__ = 'network_ips'
    KIND = AssetKind.NETWORK
    REQUIRED_FIELDS = ('ip_address', 'subnet_mask')
    EDITABLE_FIELDS = ('ip_address', 'subnet_mask', 'gateway', 'assigned_device', 'vlan_id',
                       'is_active', 'notes')
    SEARCH_FIELDS = ('ip_address', 'assigned_device', 'notes')
    FILTER_FIELDS = ('is_active',)

    id = db.Column(db.Integer, primary_key=True)
    ip_address = db.Column(db.String(45), unique=True, nullable=False)
    subnet_mask = db.Column(db.String(45), nullable=False)
    gateway = db.Column(db.String(45))
    assigned_device = db.Column(db.String(200))
    vlan_id = db.Column(db.Integer)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    notes = db.Column(db.Text)

    @classmethod
    def order_column(cls):
        return cls.ip_address.asc()

    def is_active_asset(self):
        return bool(self.is_active)

    def to_dict(self):
        data = super().to_dict()
        ip_range = get_ip_range(self.ip_address, self.subnet_mask)
        data['network_range'] = {'start': ip_range[0], 'end': ip_range[1]} if ip_range else None
        return data

    @validates('ip_address', 'gateway')
    def validate_ip(self, key, value):
        if value and not is_valid_ip(value):
            raise ValueError(f"Invalid {key.replace('_', ' ')}: {value}")
        return value

    @validates('subnet_mask')
    def validate_subnet_mask(self, key, value):
        if not is_valid_subnet_mask(value or ''):
            raise ValueError(f"Invalid subnet mask: {value}")
        return value

class Printer(TrackedAsset, db.Model):
    __tablename__ = 'printers'
    KIND = AssetKind.PRINTER
    REQUIRED_FIELDS = ('asset_number', 'model_name')
    EDITABLE_FIELDS = ('asset_number', 'model_name', 'ip_address', 'location', 'toner_status',
                       'drum_status', 'vendor_name', 'vendor_contact', 'status', 'notes')
    SEARCH_FIELDS = ('asset_number', 'model_name', 'location', 'ip_address')

    id = db.Column(db.Integer, primary_key=True)
    asset_number = db.Column(db.String(50), unique=True, nullable=False)
    model_name = db.Column(db.String(200), nullable=False)
    ip_address = db.Column(db.String(45))
    location = db.Column(db.String(200))
    toner_status = db.Column(db.String(50))
    drum_status = db.Column(db.String(50))
    vendor_name = db.Column(db.String(100))
    vendor_contact = db.Column(db.String(100))
    status = db.Column(db.String(20), nullable=False, default=PrinterStatus.ACTIVE.value, index=True)
    notes = db.Column(db.Text)

    @validates('status')
    def validate_status(self, key, value):
        return match_enum(PrinterStatus, value, 'status')

    @validates('ip_address')
    def validate_ip(self, key, value):
        if value and not is_valid_ip(value):
            raise ValueError(f"Invalid IP address: {value}")
        return value

class Software(TrackedAsset, db.Model):
    __tablename__ = 'software'
    KIND = AssetKind.SOFTWARE
    REQUIRED_FIELDS = ('software_name', 'purchased_quantity')
    EDITABLE_FIELDS = ('software_name', 'license_key', 'purchased_quantity', 'allocated_quantity',
                       'expiry_date', 'version', 'vendor_name', 'status', 'notes')
    SEARCH_FIELDS = ('software_name', 'vendor_name', 'license_key')

    id = db.Column(db.Integer, primary_key=True)
    software_name = db.Column(db.String(200), nullable=False)
    license_key = db.Column(db.String(200))
    purchased_quantity = db.Column(db.Integer, nullable=False, default=0)
    allocated_quantity = db.Column(db.Integer, nullable=False, default=0)
    expiry_date = db.Column(db.Date)
    version = db.Column(db.String(50))
    vendor_name = db.Column(db.String(100))
    status = db.Column(db.String(20), nullable=False, default=SoftwareStatus.ACTIVE.value, index=True)
    notes = db.Column(db.Text)

    __table_args__ = (
        db.CheckConstraint('allocated_quantity <= purchased_quantity', name='check_allocation'),
    )

    @validates('status')
    def validate_status(self, key, value):
        return match_enum(SoftwareStatus, value, 'status')

    @validates('purchased_quantity', 'allocated_quantity')
    def validate_quantity(self, key, value):
        if value is None:
            return 0
        if value < 0:
            raise ValueError(f"{key.replace('_', ' ').capitalize()} cannot be negative")
        return value

    def check(self):
        if (self.allocated_quantity or 0) > (self.purchased_quantity or 0):
            raise ValueError("Allocated quantity cannot exceed purchased quantity")

# Lookup used by the services and blueprints, keyed by history asset type.
ASSET_MODELS = {model.KIND.value: model for model in (Pc, Server, NetworkIp, Printer, Software)}
