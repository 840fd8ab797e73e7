from tests.helpers import ApiTestCase


class TestLogin(ApiTestCase):

    def login(self, **body):
        return self.client.post('/api/login', json=body)

    def test_doctor_login(self):
        doctor = self.make_doctor(email='a@x.com')
        body = self.assertEnvelope(
            self.login(email='a@x.com', password='secret1', userType='doctor'), 200
        )
        self.assertEqual(len(body['token']), 64)
        self.assertEqual(body['data']['token'], body['token'])
        self.assertEqual(body['user']['id'], doctor.id)
        self.assertEqual(body['user']['userType'], 'doctor')
        self.assertNotIn('password', body['user'])

    def test_admin_login(self):
        self.make_admin()
        body = self.assertEnvelope(
            self.login(email='admin@example.com', password='admin123', userType='admin'), 200
        )
        self.assertEqual(body['user']['userType'], 'admin')
        self.assertEqual(body['user']['role'], 'admin')

    def test_unknown_user(self):
        body = self.assertEnvelope(
            self.login(email='nobody@x.com', password='secret1', userType='doctor'), 401, False
        )
        self.assertEqual(body['message'], 'User not found')

    def test_wrong_password(self):
        self.make_doctor(email='a@x.com')
        body = self.assertEnvelope(
            self.login(email='a@x.com', password='wrong-pass', userType='doctor'), 401, False
        )
        self.assertEqual(body['message'], 'Invalid password')

    def test_doctor_credentials_do_not_open_admin(self):
        self.make_doctor(email='a@x.com')
        body = self.assertEnvelope(
            self.login(email='a@x.com', password='secret1', userType='admin'), 401, False
        )
        self.assertEqual(body['message'], 'User not found')

    def test_invalid_user_type(self):
        self.assertEnvelope(
            self.login(email='a@x.com', password='secret1', userType='nurse'), 400, False
        )

    def test_missing_fields(self):
        body = self.assertEnvelope(self.login(email='a@x.com'), 400, False)
        self.assertIn('password', body['message'])

    def test_malformed_email(self):
        self.assertEnvelope(
            self.login(email='not-an-email', password='secret1', userType='doctor'), 400, False
        )

    def test_invalid_json(self):
        response = self.client.post('/api/login', data='{oops', content_type='application/json')
        self.assertEnvelope(response, 400, False)
