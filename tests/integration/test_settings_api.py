"""
Integration tests for branding, presets and template endpoints.
"""

from io import BytesIO

from PIL import Image


def _png_upload():
    buffer = BytesIO()
    Image.new('RGB', (16, 16), 'blue').save(buffer, format='PNG')
    buffer.seek(0)
    return buffer


class TestBranding:

    def test_defaults(self, sales_client):
        response = sales_client.get('/settings/branding')

        branding = response.get_json()['branding']
        assert branding['company_name'] == 'Rogers Capital Technology Services Ltd'
        assert branding['primary_color'] == '#3b82f6'

    def test_update_and_reset(self, sales_client):
        response = sales_client.put('/settings/branding', json={
            'company_name': 'Reseller Ltd',
            'company_email': 'sales@reseller.mu',
        })
        assert response.status_code == 200
        assert response.get_json()['branding']['company_name'] == 'Reseller Ltd'

        response = sales_client.delete('/settings/branding')
        assert response.get_json()['branding']['company_name'] == 'Rogers Capital Technology Services Ltd'

    def test_invalid_color(self, sales_client):
        response = sales_client.put('/settings/branding', json={'primary_color': 'red'})

        assert response.status_code == 400
        assert 'primary_color' in response.get_json()['errors']

    def test_logo_upload(self, sales_client):
        response = sales_client.post(
            '/settings/branding/logo',
            data={'logo': (_png_upload(), 'logo.png', 'image/png')},
            content_type='multipart/form-data'
        )

        assert response.status_code == 200
        assert response.get_json()['branding']['company_logo'].startswith('data:image/png;base64,')

    def test_logo_upload_rejects_non_images(self, sales_client):
        response = sales_client.post(
            '/settings/branding/logo',
            data={'logo': (BytesIO(b'%PDF-1.4 not an image'), 'logo.png', 'image/png')},
            content_type='multipart/form-data'
        )

        assert response.status_code == 400

    def test_requires_login(self, client):
        assert client.get('/settings/branding').status_code == 401


class TestPresets:

    def test_preset_lifecycle(self, sales_client):
        response = sales_client.post('/settings/presets', json={
            'name': 'reseller-a',
            'company_name': 'Reseller A Ltd',
            'primary_color': '#00aa00',
        })
        assert response.status_code == 201

        presets = sales_client.get('/settings/presets').get_json()['presets']
        assert [p['name'] for p in presets] == ['reseller-a']

        response = sales_client.post('/settings/presets/reseller-a/apply')
        assert response.get_json()['branding']['company_name'] == 'Reseller A Ltd'
        assert sales_client.get('/settings/branding').get_json()['branding']['primary_color'] == '#00aa00'

        assert sales_client.delete('/settings/presets/reseller-a').status_code == 200
        assert sales_client.get('/settings/presets').get_json()['presets'] == []

    def test_apply_missing_preset(self, sales_client):
        assert sales_client.post('/settings/presets/missing/apply').status_code == 404


class TestTemplates:

    def test_list_includes_builtins(self, sales_client):
        templates = sales_client.get('/settings/templates').get_json()['templates']

        assert [t['name'] for t in templates] == ['standard', 'service-order']
        assert all(t['builtin'] for t in templates)
        assert 'html' not in templates[0]

    def test_get_builtin(self, sales_client):
        template = sales_client.get('/settings/templates/standard').get_json()['template']
        assert '{{quoteNumber}}' in template['html']

    def test_placeholders(self, sales_client):
        placeholders = sales_client.get('/settings/placeholders').get_json()['placeholders']

        names = {p['name'] for p in placeholders}
        assert {'quoteNumber', 'featuresRows', 'primaryColor'} <= names

    def test_admin_saves_and_deletes(self, admin_client):
        response = admin_client.post('/settings/templates', json={
            'name': 'minimal',
            'title': 'Minimal',
            'html': '<p>{{quoteNumber}}</p>',
        })
        assert response.status_code == 201

        names = [t['name'] for t in admin_client.get('/settings/templates').get_json()['templates']]
        assert names == ['standard', 'service-order', 'minimal']

        assert admin_client.delete('/settings/templates/minimal').status_code == 200
        assert admin_client.get('/settings/templates/minimal').status_code == 404

    def test_unknown_tokens_rejected(self, admin_client):
        response = admin_client.post('/settings/templates', json={
            'name': 'bad',
            'html': '<p>{{quoteNumber}} {{vatNumber}}</p>',
        })

        assert response.status_code == 422
        assert response.get_json()['unknown_tokens'] == ['vatNumber']

    def test_builtin_is_read_only(self, admin_client):
        response = admin_client.post('/settings/templates', json={'name': 'standard', 'html': '<p></p>'})
        assert response.status_code == 403

        assert admin_client.delete('/settings/templates/service-order').status_code == 403

    def test_sales_cannot_save_templates(self, sales_client):
        response = sales_client.post('/settings/templates', json={'name': 'minimal', 'html': '<p></p>'})
        assert response.status_code == 403
