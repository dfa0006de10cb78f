import logging

from flask import current_app
from sqlalchemy import event

from ithub.app import db

logger = logging.getLogger(__name__)

def enable_sqlite_savepoints(engine):
    # pysqlite issues its own BEGIN lazily and breaks SAVEPOINT; let SQLAlchemy
    # emit the transaction statements instead.
    @event.listens_for(engine, 'connect')
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, 'begin')
    def do_begin(conn):
        conn.exec_driver_sql('BEGIN')

def seed_admin():
    """Create the default admin account if it does not exist yet."""
    from ithub.app.models.user import User

    username = current_app.config['ADMIN_USERNAME']
    # Check if the admin user is already there
    if User.query.filter_by(username=username).first():
        logger.info('Admin user already exists')
        return None

    admin = User(username=username, name='Administrator', role='admin')
    admin.set_password(current_app.config['ADMIN_PASSWORD'])
    db.session.add(admin)
    db.session.commit()
    logger.info('Created admin user %s', username)
    return admin
