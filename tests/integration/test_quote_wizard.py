"""
Integration tests for the quote creation wizard.
"""

import re
from datetime import date

from quotegen.models import Quote, QuoteFeature, Customer


class TestAcmeScenario:
    """Customer -> service -> features -> generate, end to end."""

    def test_full_wizard(self, sales_client, session, sales_user, dia_service, bandwidth_20, static_ip):
        response = sales_client.post('/quotes/wizard/customer', json={
            'company_name': 'Acme Ltd',
            'contact_name': 'Jane Doe',
            'email': 'jane@acme.mu',
            'address': '12 Royal Road\nCurepipe',
        })
        assert response.status_code == 200
        wizard = response.get_json()['wizard']
        assert wizard['customer']['company_name'] == 'Acme Ltd'
        assert wizard['customer']['country'] == 'Mauritius'
        assert wizard['ready'] is True

        response = sales_client.post('/quotes/wizard/service', json={
            'service_id': dia_service.id,
            'bandwidth_option_id': bandwidth_20.id,
            'contract_term_months': 24,
        })
        assert response.status_code == 200
        totals = response.get_json()['wizard']['totals']
        assert totals == {'total_monthly': '20000.00', 'total_one_time': '5000.00'}

        response = sales_client.post('/quotes/wizard/features', json={
            'feature_ids': [static_ip.id],
            'notes': 'Install before March',
        })
        assert response.status_code == 200
        assert response.get_json()['wizard']['totals'] == {
            'total_monthly': '20500.00', 'total_one_time': '5000.00'
        }

        response = sales_client.post('/quotes/wizard/generate')
        assert response.status_code == 201
        quote = response.get_json()['quote']

        assert re.match(r'^Q\d{4}-\d{4}$', quote['quote_number'])
        assert quote['quote_number'][1:5] == date.today().strftime('%y%m')
        assert quote['total_monthly_cost'] == '20500.00'
        assert quote['total_one_time_cost'] == '5000.00'
        assert quote['contract_term_months'] == 24
        assert quote['status'] == 'draft'
        assert quote['sales_rep_id'] == sales_user.id
        assert [f['name'] for f in quote['features']] == ['Static IP']

        stored = session.get(Quote, quote['id'])
        assert stored.notes == 'Install before March'
        assert session.query(QuoteFeature).filter_by(quote_id=quote['id']).count() == 1

        # Wizard is cleared after generation
        with sales_client.session_transaction() as sess:
            assert 'quote_wizard' not in sess

    def test_existing_customer(self, sales_client, customer):
        response = sales_client.post('/quotes/wizard/customer', json={'customer_id': customer.id})

        assert response.status_code == 200
        assert response.get_json()['wizard']['customer']['id'] == customer.id

    def test_customer_only_quote(self, sales_client, session, customer):
        sales_client.post('/quotes/wizard/customer', json={'customer_id': customer.id})

        response = sales_client.post('/quotes/wizard/generate')

        assert response.status_code == 201
        quote = response.get_json()['quote']
        assert quote['total_monthly_cost'] == '0.00'
        assert quote['service_id'] is None

    def test_customers_are_not_deduplicated(self, sales_client, session):
        payload = {'company_name': 'Acme Ltd', 'contact_name': 'Jane Doe', 'email': 'jane@acme.mu'}

        sales_client.post('/quotes/wizard/customer', json=payload)
        sales_client.post('/quotes/wizard/customer', json=payload)

        assert session.query(Customer).filter_by(company_name='Acme Ltd').count() == 2


class TestWizardValidation:

    def test_generate_requires_customer(self, sales_client):
        response = sales_client.post('/quotes/wizard/generate')

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Add customer details first'

    def test_customer_form_errors(self, sales_client, session):
        response = sales_client.post('/quotes/wizard/customer', json={
            'company_name': 'A',
            'contact_name': '',
            'email': 'not-an-email',
        })

        assert response.status_code == 400
        assert set(response.get_json()['errors']) == {'company_name', 'contact_name', 'email'}
        assert session.query(Customer).count() == 0

    def test_unknown_customer(self, sales_client):
        response = sales_client.post('/quotes/wizard/customer', json={'customer_id': 999})
        assert response.status_code == 404

    def test_contract_term_must_be_offered(self, sales_client, dia_service, bandwidth_20):
        response = sales_client.post('/quotes/wizard/service', json={
            'service_id': dia_service.id,
            'bandwidth_option_id': bandwidth_20.id,
            'contract_term_months': 18,
        })

        assert response.status_code == 400
        assert 'contract_term_months' in response.get_json()['errors']

    def test_sales_cannot_pick_unavailable_bandwidth(self, sales_client, dia_service, bandwidth_hidden):
        response = sales_client.post('/quotes/wizard/service', json={
            'service_id': dia_service.id,
            'bandwidth_option_id': bandwidth_hidden.id,
            'contract_term_months': 12,
        })
        assert response.status_code == 400

    def test_admin_can_pick_unavailable_bandwidth(self, admin_client, dia_service, bandwidth_hidden):
        response = admin_client.post('/quotes/wizard/service', json={
            'service_id': dia_service.id,
            'bandwidth_option_id': bandwidth_hidden.id,
            'contract_term_months': 12,
        })
        assert response.status_code == 200

    def test_features_require_service(self, sales_client):
        response = sales_client.post('/quotes/wizard/features', json={'feature_ids': []})
        assert response.status_code == 400

    def test_only_linked_features_accepted(self, sales_client, dia_service, bandwidth_20, managed_router):
        sales_client.post('/quotes/wizard/service', json={
            'service_id': dia_service.id,
            'bandwidth_option_id': bandwidth_20.id,
            'contract_term_months': 12,
        })

        response = sales_client.post('/quotes/wizard/features', json={'feature_ids': [managed_router.id]})

        assert response.status_code == 400
        assert 'feature_ids' in response.get_json()['errors']

    def test_changing_service_clears_features(self, sales_client, session, dia_service, bandwidth_20, static_ip):
        from decimal import Decimal
        from quotegen.models import Service, BandwidthOption
        other = Service(name='Private WAN', category='Private WAN', setup_fee=Decimal('7500'))
        other.bandwidth_options.append(BandwidthOption(bandwidth=Decimal('10'), unit='Mbps',
                                                       monthly_price=Decimal('9000')))
        session.add(other)
        session.commit()
        other_id = other.id
        other_bandwidth_id = other.bandwidth_options[0].id

        sales_client.post('/quotes/wizard/service', json={
            'service_id': dia_service.id, 'bandwidth_option_id': bandwidth_20.id, 'contract_term_months': 12,
        })
        sales_client.post('/quotes/wizard/features', json={'feature_ids': [static_ip.id]})
        response = sales_client.post('/quotes/wizard/service', json={
            'service_id': other_id, 'bandwidth_option_id': other_bandwidth_id, 'contract_term_months': 12,
        })

        wizard = response.get_json()['wizard']
        assert wizard['state']['feature_ids'] == []
        assert wizard['totals'] == {'total_monthly': '9000.00', 'total_one_time': '7500.00'}

    def test_reset(self, sales_client, customer):
        sales_client.post('/quotes/wizard/customer', json={'customer_id': customer.id})

        response = sales_client.delete('/quotes/wizard')

        assert response.get_json()['wizard']['state']['customer_id'] is None

    def test_wizard_requires_login(self, client):
        assert client.get('/quotes/wizard').status_code == 401


class TestQuoteList:

    def test_list_and_status_flow(self, sales_client, customer):
        sales_client.post('/quotes/wizard/customer', json={'customer_id': customer.id})
        quote_id = sales_client.post('/quotes/wizard/generate').get_json()['quote']['id']

        response = sales_client.post(f'/quotes/{quote_id}/status', json={'status': 'sent'})
        assert response.status_code == 200
        assert response.get_json()['quote']['status'] == 'sent'

        response = sales_client.post(f'/quotes/{quote_id}/status', json={'status': 'draft'})
        assert response.status_code == 400

        listed = sales_client.get('/quotes/?status=sent').get_json()['quotes']
        assert [q['id'] for q in listed] == [quote_id]
        assert sales_client.get('/quotes/?status=draft').get_json()['quotes'] == []
        assert len(sales_client.get('/quotes/?q=acme').get_json()['quotes']) == 1

    def test_unknown_status_filter(self, sales_client):
        assert sales_client.get('/quotes/?status=archived').status_code == 400

    def test_dashboard_counts(self, sales_client, customer):
        sales_client.post('/quotes/wizard/customer', json={'customer_id': customer.id})
        sales_client.post('/quotes/wizard/generate')

        data = sales_client.get('/').get_json()
        assert data['quotes']['total'] == 1
        assert data['quotes']['by_status']['draft'] == 1
        assert data['customers'] == 1
