"""
Integration tests for the service catalog endpoints.
"""

from decimal import Decimal

from quotegen.models import Service, BandwidthOption


class TestServices:

    def test_create_service_with_tiers_and_features(self, admin_client, session):
        response = admin_client.post('/catalog/services', json={
            'name': 'Enterprise Broadband Internet',
            'category': 'EBI',
            'description': 'Business broadband',
            'setup_fee': '2500.00',
        })
        assert response.status_code == 201
        service_id = response.get_json()['service']['id']

        response = admin_client.post(f'/catalog/services/{service_id}/bandwidth', json={
            'bandwidth': '50',
            'unit': 'Mbps',
            'monthly_price': '4500.00',
        })
        assert response.status_code == 201
        option = response.get_json()['bandwidth_option']
        assert option['label'] == '50 Mbps'
        assert option['is_available'] is True

        response = admin_client.post('/catalog/features', json={
            'name': 'Static IP',
            'monthly_price': '500.00',
        })
        assert response.status_code == 201
        feature_id = response.get_json()['feature']['id']
        assert response.get_json()['feature']['one_time_fee'] == '0.00'

        response = admin_client.post(f'/catalog/services/{service_id}/features/{feature_id}')
        assert response.status_code == 201

        # Linking twice is a no-op
        response = admin_client.post(f'/catalog/services/{service_id}/features/{feature_id}')
        assert response.status_code == 200
        assert len(response.get_json()['features']) == 1

        service = admin_client.get(f'/catalog/services/{service_id}').get_json()['service']
        assert service['setup_fee'] == '2500.00'
        assert [b['label'] for b in service['bandwidth_options']] == ['50 Mbps']
        assert [f['name'] for f in service['features']] == ['Static IP']

    def test_validation_errors(self, admin_client):
        response = admin_client.post('/catalog/services', json={
            'name': '',
            'category': 'Satellite',
            'setup_fee': '-1',
        })

        assert response.status_code == 400
        errors = response.get_json()['errors']
        assert set(errors) >= {'name', 'category', 'setup_fee'}

    def test_update_service_keeps_quote_totals(self, admin_client, session, customer, dia_service, bandwidth_20):
        from quotegen.services.quote_service import QuoteDraft, create_quote
        quote = create_quote(session, QuoteDraft(
            customer_id=customer.id, service_id=dia_service.id, bandwidth_option_id=bandwidth_20.id
        ))

        response = admin_client.put(f'/catalog/services/{dia_service.id}', json={
            'name': 'DIA Premium',
            'category': 'DIA',
            'setup_fee': '9000.00',
        })
        assert response.status_code == 200
        assert response.get_json()['service']['setup_fee'] == '9000.00'

        detail = admin_client.get(f'/quotes/{quote.id}').get_json()['quote']
        assert detail['total_one_time_cost'] == '5000.00'
        assert detail['service_name'] == 'Dedicated Internet Access'

    def test_delete_service(self, admin_client, session, dia_service):
        response = admin_client.delete(f'/catalog/services/{dia_service.id}')

        assert response.status_code == 200
        assert session.query(Service).count() == 0
        assert session.query(BandwidthOption).count() == 0

    def test_missing_service(self, admin_client):
        assert admin_client.get('/catalog/services/999').status_code == 404


class TestBandwidthVisibility:
    """Unavailable tiers are hidden from sales users."""

    def test_sales_user_sees_only_available(self, sales_client, dia_service):
        response = sales_client.get(f'/catalog/services/{dia_service.id}/bandwidth')

        labels = [b['label'] for b in response.get_json()['bandwidth_options']]
        assert labels == ['20 Mbps']

    def test_admin_sees_all(self, admin_client, dia_service):
        response = admin_client.get(f'/catalog/services/{dia_service.id}/bandwidth')

        labels = [b['label'] for b in response.get_json()['bandwidth_options']]
        assert labels == ['20 Mbps', '1 Gbps']

    def test_update_availability(self, admin_client, session, bandwidth_hidden):
        response = admin_client.put(f'/catalog/bandwidth/{bandwidth_hidden.id}', json={
            'bandwidth': '1',
            'unit': 'Gbps',
            'monthly_price': '150000.00',
            'is_available': True,
        })

        assert response.status_code == 200
        assert response.get_json()['bandwidth_option']['is_available'] is True

    def test_update_without_flag_keeps_availability(self, admin_client, bandwidth_hidden):
        response = admin_client.put(f'/catalog/bandwidth/{bandwidth_hidden.id}', json={
            'bandwidth': '1',
            'unit': 'Gbps',
            'monthly_price': '140000.00',
        })

        option = response.get_json()['bandwidth_option']
        assert option['is_available'] is False
        assert option['monthly_price'] == '140000.00'


class TestFeatureLinks:

    def test_unlink(self, admin_client, dia_service, static_ip):
        response = admin_client.delete(f'/catalog/services/{dia_service.id}/features/{static_ip.id}')

        assert response.status_code == 200
        assert response.get_json()['features'] == []

    def test_unlink_not_linked(self, admin_client, dia_service, managed_router):
        response = admin_client.delete(f'/catalog/services/{dia_service.id}/features/{managed_router.id}')
        assert response.status_code == 404

    def test_sales_can_read_features(self, sales_client, dia_service, static_ip):
        response = sales_client.get(f'/catalog/services/{dia_service.id}/features')

        assert response.status_code == 200
        assert [f['name'] for f in response.get_json()['features']] == ['Static IP']

    def test_feature_prices_are_decimal_strings(self, admin_client, static_ip):
        feature = admin_client.get(f'/catalog/features/{static_ip.id}').get_json()['feature']
        assert Decimal(feature['monthly_price']) == Decimal('500.00')
