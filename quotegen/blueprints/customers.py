"""Customers blueprint - list, search and create quoted companies."""
from flask import Blueprint, jsonify, request, current_app, Response
from typing import Tuple

from quotegen.database import get_session
from quotegen.forms.quote_forms import CustomerForm
from quotegen.middleware import require_login
from quotegen.services import customer_service
from quotegen.exceptions import ValidationError

customers_bp = Blueprint('customers', __name__, url_prefix='/customers')


@customers_bp.route('/', methods=['GET'])
@require_login
def list_customers() -> Response:
    """List customers with optional search (?q=)."""
    search = request.args.get('q', '').strip() or None
    customers = customer_service.search_customers(get_session(), search)
    return jsonify({'status': 'ok', 'customers': [c.to_dict() for c in customers]})


@customers_bp.route('/', methods=['POST'])
@require_login
def create_customer() -> Tuple[Response, int]:
    form = CustomerForm()
    if not form.validate_on_submit():
        raise ValidationError('Invalid customer data', errors=form.errors)

    customer = customer_service.create_customer(get_session(), form.data)
    current_app.logger.info(f"Customer {customer.id} created via API")
    return jsonify({'status': 'ok', 'customer': customer.to_dict()}), 201


@customers_bp.route('/<int:customer_id>', methods=['GET'])
@require_login
def get_customer(customer_id: int) -> Response:
    customer = customer_service.get_customer(get_session(), customer_id)
    data = customer.to_dict()
    data['quotes'] = [
        {'id': q.id, 'quote_number': q.quote_number, 'status': q.status}
        for q in customer.quotes
    ]
    return jsonify({'status': 'ok', 'customer': data})
