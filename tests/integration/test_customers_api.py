"""
Integration tests for the customers endpoints.
"""


class TestCustomers:

    def test_create_and_get(self, sales_client):
        response = sales_client.post('/customers/', json={
            'company_name': 'Blue Ocean Hotels',
            'contact_name': 'Raj Patel',
            'email': 'raj@blueocean.mu',
            'city': 'Grand Baie',
        })

        assert response.status_code == 201
        customer = response.get_json()['customer']
        assert customer['country'] == 'Mauritius'

        detail = sales_client.get(f"/customers/{customer['id']}").get_json()['customer']
        assert detail['company_name'] == 'Blue Ocean Hotels'
        assert detail['quotes'] == []

    def test_search(self, sales_client, customer):
        sales_client.post('/customers/', json={
            'company_name': 'Blue Ocean Hotels', 'contact_name': 'Raj Patel', 'email': 'raj@blueocean.mu',
        })

        names = [c['company_name'] for c in sales_client.get('/customers/').get_json()['customers']]
        assert names == ['Acme Ltd', 'Blue Ocean Hotels']

        found = sales_client.get('/customers/?q=jane@acme').get_json()['customers']
        assert [c['company_name'] for c in found] == ['Acme Ltd']

    def test_invalid_email(self, sales_client):
        response = sales_client.post('/customers/', json={
            'company_name': 'Blue Ocean Hotels', 'contact_name': 'Raj Patel', 'email': 'raj',
        })

        assert response.status_code == 400
        assert 'email' in response.get_json()['errors']

    def test_missing_customer(self, sales_client):
        assert sales_client.get('/customers/999').status_code == 404
