import logging
import os

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_bcrypt import Bcrypt
from ithub.config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    _ensure_sqlite_dir(app.config['SQLALCHEMY_DATABASE_URI'])

    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)

    from ithub.app.models.user import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    with app.app_context():
        @app.route('/health')
        def health():
            return jsonify({'status': 'ok'})

        # Import blueprints inside context
        from ithub.app.routes import asset_blueprints
        from ithub.app.routes.users import users_bp
        from ithub.app.routes.reports import reports_bp

        # Register blueprints
        for bp in asset_blueprints:
            app.register_blueprint(bp)
        app.register_blueprint(users_bp, url_prefix='/api/auth')
        app.register_blueprint(reports_bp, url_prefix='/api/reports')

        from ithub.app.database import enable_sqlite_savepoints
        if db.engine.dialect.name == 'sqlite':
            enable_sqlite_savepoints(db.engine)

        # Create all database tables
        db.create_all()

    return app

def _ensure_sqlite_dir(uri):
    prefix = 'sqlite:///'
    if uri.startswith(prefix) and len(uri) > len(prefix):
        os.makedirs(os.path.dirname(uri[len(prefix):]) or '.', exist_ok=True)
