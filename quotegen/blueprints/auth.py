"""
Authentication blueprint.
Handles login, logout and the current-user endpoint (signed session cookie).
"""

from flask import Blueprint, jsonify, session, g, Response
from sqlalchemy import func
from typing import Tuple, Union
import logging

from quotegen.database import get_session
from quotegen.models import AppUser
from quotegen.forms.quote_forms import LoginForm
from quotegen.middleware import require_login
from quotegen.exceptions import UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)


auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/login', methods=['POST'])
def login() -> Union[Response, Tuple[Response, int]]:
    """Log in with email and password."""
    form = LoginForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid login data', errors=form.errors)

    db_session = get_session()
    email = form.email.data.strip().lower()
    user = db_session.query(AppUser).filter(
        func.lower(AppUser.email) == email,
        AppUser.active == True  # noqa: E712
    ).first()

    if not user or not user.check_password(form.password.data):
        logger.warning(f"[AUTH] Failed login for {email}")
        raise UnauthorizedError('Invalid email or password')

    session.clear()
    session['user_id'] = user.id
    session.permanent = True

    logger.info(f"[AUTH] User {user.id} logged in")
    return jsonify({'status': 'ok', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout() -> Response:
    """Clear the session (including any wizard in progress)."""
    user_id = session.get('user_id')
    session.clear()
    if user_id:
        logger.info(f"[AUTH] User {user_id} logged out")
    return jsonify({'status': 'ok'})


@auth_bp.route('/me', methods=['GET'])
@require_login
def me() -> Response:
    return jsonify({'status': 'ok', 'user': g.user.to_dict()})
