"""Main blueprint with health check and dashboard endpoints."""
from flask import Blueprint, jsonify, g
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from quotegen.database import get_session
from quotegen.models import Quote, QuoteStatus, Customer, Service, Feature
from quotegen.middleware import require_login

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        session = get_session()
        # Execute simple query to test connection
        result = session.execute(text("SELECT 1 as health_check"))
        row = result.fetchone()

        if row and row[0] == 1:
            return jsonify({
                'status': 'healthy',
                'database': 'connected',
                'message': 'Database connection successful'
            }), 200
        else:
            return jsonify({
                'status': 'unhealthy',
                'database': 'error',
                'message': 'Unexpected query result'
            }), 500

    except SQLAlchemyError as e:
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
            'message': 'Failed to connect to database'
        }), 500


@main_bp.route('/')
@require_login
def dashboard():
    """Counts for the landing page: quotes by status, catalog size and recent quotes."""
    session = get_session()

    by_status = dict(
        session.query(Quote.status, func.count(Quote.id)).group_by(Quote.status).all()
    )
    recent = session.query(Quote).order_by(Quote.created_at.desc(), Quote.id.desc()).limit(5).all()

    return jsonify({
        'status': 'ok',
        'user': g.user.to_dict(),
        'quotes': {
            'total': sum(by_status.values()),
            'by_status': {s.value: by_status.get(s.value, 0) for s in QuoteStatus},
        },
        'customers': session.query(func.count(Customer.id)).scalar(),
        'services': session.query(func.count(Service.id)).scalar(),
        'features': session.query(func.count(Feature.id)).scalar(),
        'recent_quotes': [q.to_dict() for q in recent],
    })
