from enum import Enum
from sqlalchemy import event
from ithub.app import db
from .user import utcnow

class AssetKind(Enum):
    PC = "pc"
    SERVER = "server"
    NETWORK = "network"
    PRINTER = "printer"
    SOFTWARE = "software"

class HistoryAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    DISPOSE = "dispose"

class AssetHistory(db.Model):
    """Append-only audit row. ``update`` rows carry one changed field each."""
    __tablename__ = 'asset_history'

    id = db.Column(db.Integer, primary_key=True)
    asset_type = db.Column(db.String(20), nullable=False)
    asset_id = db.Column(db.Integer, nullable=False)
    action = db.Column(db.String(20), nullable=False)
    field_name = db.Column(db.String(100), nullable=True)
    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    changed_by = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True)
    changed_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)

    __table_args__ = (
        db.Index('ix_asset_history_asset', 'asset_type', 'asset_id'),
        db.Index('ix_asset_history_changed_at', 'changed_at'),
    )

    def to_dict(self, changed_by_name=None):
        return {
            'id': self.id,
            'asset_type': self.asset_type,
            'asset_id': self.asset_id,
            'action': self.action,
            'field_name': self.field_name,
            'old_value': self.old_value,
            'new_value': self.new_value,
            'changed_by': self.changed_by,
            'changed_by_name': changed_by_name,
            'changed_at': self.changed_at.isoformat() if self.changed_at else None,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
        }

    def __repr__(self):
        return f"AssetHistory('{self.asset_type}', {self.asset_id}, '{self.action}', '{self.changed_at}')"

@event.listens_for(AssetHistory, 'before_update')
def _refuse_update(mapper, connection, target):
    raise ValueError("Asset history records are immutable and cannot be modified.")

@event.listens_for(AssetHistory, 'before_delete')
def _refuse_delete(mapper, connection, target):
    raise ValueError("Asset history records cannot be deleted.")
