import shutil
import tempfile
import unittest
from datetime import datetime

from werkzeug.security import generate_password_hash

from app import create_app
from models import db, Admin, Doctor, SCREENING_MODELS, MALE, NOT_SUSPICIOUS


class ApiTestCase(unittest.TestCase):
    """Fresh app, in-memory database and upload folder for every test."""

    def setUp(self):
        self.upload_dir = tempfile.mkdtemp()
        self.app = create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite://',
            'UPLOAD_FOLDER': self.upload_dir,
        })
        self.client = self.app.test_client()
        self.ctx = self.app.app_context()
        self.ctx.push()
        self._mobile = 9000000000

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()
        shutil.rmtree(self.upload_dir, ignore_errors=True)

    # ---------- Factories ----------

    def make_doctor(self, **fields):
        n = Doctor.query.count() + 1
        values = {
            'doctor_name': f'Doctor {n}',
            'hospital_type': 'Government',
            'hospital_name': f'Hospital {n}',
            'phone_no': f'98765{n:05d}',
            'experience': 5,
            'email': f'doctor{n}@example.com',
            'password': generate_password_hash('secret1'),
        }
        values.update(fields)
        doctor = Doctor(**values)
        db.session.add(doctor)
        db.session.commit()
        return doctor

    def make_admin(self, email='admin@example.com', password='admin123'):
        admin = Admin(name='Admin', email=email, password=generate_password_hash(password))
        db.session.add(admin)
        db.session.commit()
        return admin

    def next_mobile(self):
        self._mobile += 1
        return str(self._mobile)

    def make_screening(self, category, doctor, **fields):
        values = {
            'doctor_id': doctor.id,
            'name': 'Asha',
            'age': 10,
            'gender': MALE,
            'mobile_no': self.next_mobile(),
            'school_name': 'Govt School',
            'have_aadhar': 'yes',
            'have_shramik': 'no',
            'heart_status': NOT_SUSPICIOUS,
            'created_at': datetime.now(),
        }
        if category == 'child':
            values['father_name'] = 'Ramesh'
        values.update(fields)
        record = SCREENING_MODELS[category](**values)
        db.session.add(record)
        db.session.commit()
        return record

    # ---------- Assertions ----------

    def assertEnvelope(self, response, status, success=True):
        self.assertEqual(response.status_code, status, response.get_data(as_text=True))
        body = response.get_json()
        self.assertEqual(body['success'], success)
        self.assertIn('message', body)
        self.assertIn('timestamp', body)
        return body
