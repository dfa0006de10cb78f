# app/routes/__init__.py
from flask import Blueprint, request
from ithub.app.models import AssetKind

# Create blueprints, one JSON collection per asset kind
asset_blueprints = [Blueprint(kind.value, __name__, url_prefix=f'/api/{kind.value}') for kind in AssetKind]

def get_client_ip():
    """Client address, honouring the first hop of X-Forwarded-For behind a proxy."""
    forwarded_for = request.headers.get('X-Forwarded-For')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.remote_addr

def request_meta():
    return {
        'ip_address': get_client_ip(),
        'user_agent': request.headers.get('User-Agent'),
    }

# Import views after blueprints are created
from . import assets
