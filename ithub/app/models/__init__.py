# app/models/__init__.py
from ithub.app import db

# Import models after db
from .user import User
from .asset_history import AssetHistory, AssetKind, HistoryAction
from .asset import (Pc, Server, NetworkIp, Printer, Software, PcStatus, ServerStatus,
                    PrinterStatus, SoftwareStatus, ASSET_MODELS)

__all__ = ['User', 'AssetHistory', 'AssetKind', 'HistoryAction', 'Pc', 'Server', 'NetworkIp',
    'Printer', 'Software', 'PcStatus', 'ServerStatus', 'PrinterStatus', 'SoftwareStatus', 'ASSET_MODELS']
