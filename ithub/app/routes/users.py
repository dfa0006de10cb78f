import logging

from flask import jsonify, Blueprint
from flask_login import login_user, current_user, logout_user, login_required
from ithub.app.forms import LoginForm
from ithub.app.models.user import User

logger = logging.getLogger(__name__)

users_bp = Blueprint('users', __name__)

@users_bp.route("/login", methods=['POST'])
def login():
    # JSON or form posts; the API carries no CSRF token
    form = LoginForm(meta={'csrf': False})
    if not form.validate_on_submit():
        return jsonify({'error': 'Username and password are required'}), 400

    username = str(form.username.data).strip()
    user = User.query.filter_by(username=username).first()
    if user and user.check_password(form.password.data):
        login_user(user, remember=form.remember.data)
        logger.info("User %s logged in", username)
        return jsonify({'success': True, 'user': user.to_dict()})

    logger.warning("Failed login attempt for %s", username)
    return jsonify({'error': 'Login Unsuccessful. Please check username and password'}), 401


@users_bp.route("/logout", methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})

@users_bp.route("/session")
def session_info():
    if not current_user.is_authenticated:
        return jsonify({'isLoggedIn': False})
    return jsonify({'isLoggedIn': True, 'user': current_user.to_dict()})
