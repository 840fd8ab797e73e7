from tests.helpers import ApiTestCase


class TestAppWiring(ApiTestCase):

    def test_unknown_route_uses_envelope(self):
        body = self.assertEnvelope(self.client.get('/api/nowhere'), 404, False)
        self.assertIsNone(body['data'])

    def test_wrong_method_uses_envelope(self):
        self.assertEnvelope(self.client.get('/api/login'), 405, False)

    def test_cors_preflight(self):
        response = self.client.options('/api/login', headers={
            'Origin': 'http://localhost:3000',
            'Access-Control-Request-Method': 'POST',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers.get('Access-Control-Allow-Origin'), '*')

    def test_cors_on_responses(self):
        response = self.client.get('/api/dashboard', headers={'Origin': 'http://localhost:3000'})
        self.assertEqual(response.headers.get('Access-Control-Allow-Origin'), '*')
