import base64
import os
from unittest import mock

from models import db, Child, Employee, Teacher, FEMALE, SUSPICIOUS
from screenings import DUPLICATE_MOBILE
from tests.helpers import ApiTestCase


class TestScreeningIntake(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.doctor = self.make_doctor()

    def payload(self, **overrides):
        data = {
            'name': 'Sita',
            'age': 9,
            'gender': FEMALE,
            'fatherName': 'Mohan',
            'mobileNo': '9123456780',
            'schoolName': 'Primary School',
            'heartStatus': SUSPICIOUS,
            'dr_id': self.doctor.id,
            'haveAadhar': 'yes',
            'haveShramik': 'no',
        }
        data.update(overrides)
        return data

    def post(self, category, data):
        return self.client.post(f'/api/screenings/{category}', json=data)

    def test_add_child(self):
        body = self.assertEnvelope(self.post('child', self.payload()), 201)
        self.assertEqual(body['data']['category'], 'child')
        self.assertEqual(body['data']['heartStatus'], SUSPICIOUS)
        child = Child.query.one()
        self.assertEqual(child.father_name, 'Mohan')
        self.assertEqual(child.doctor_id, self.doctor.id)
        self.assertIsNotNone(child.created_at)

    def test_child_requires_father_name(self):
        data = self.payload()
        del data['fatherName']
        body = self.assertEnvelope(self.post('child', data), 422, False)
        self.assertIn('fatherName', body['message'])
        self.assertEqual(Child.query.count(), 0)

    def test_teacher_does_not_need_father_name(self):
        data = self.payload()
        del data['fatherName']
        self.assertEnvelope(self.post('teacher', data), 201)
        self.assertEqual(Teacher.query.count(), 1)

    def test_invalid_enums(self):
        for field, value in [('gender', 'male'), ('heartStatus', 'ok'), ('haveAadhar', 'maybe')]:
            with self.subTest(field=field):
                self.assertEnvelope(self.post('child', self.payload(**{field: value})), 422, False)
        self.assertEqual(Child.query.count(), 0)

    def test_age_range(self):
        for age in (0, 101, 'ten', 9.5):
            with self.subTest(age=age):
                self.assertEnvelope(self.post('child', self.payload(age=age)), 422, False)
        self.assertEnvelope(self.post('child', self.payload(age='100')), 201)

    def test_mobile_must_be_ten_digits(self):
        self.assertEnvelope(self.post('child', self.payload(mobileNo='12345')), 422, False)

    def test_unknown_doctor(self):
        self.assertEnvelope(self.post('child', self.payload(dr_id=999)), 422, False)

    def test_duplicate_mobile(self):
        self.assertEnvelope(self.post('child', self.payload()), 201)
        self.assertEnvelope(self.post('child', self.payload(name='Other')), 409, False)
        self.assertEqual(Child.query.count(), 1)

    def test_same_mobile_in_other_category(self):
        self.assertEnvelope(self.post('child', self.payload()), 201)
        self.assertEnvelope(self.post('employee', self.payload()), 201)

    def test_staff_form_uses_body_category(self):
        body = self.assertEnvelope(self.post('staff', self.payload(category='employee')), 201)
        self.assertEqual(body['data']['category'], 'employee')
        self.assertEqual(Employee.query.count(), 1)
        self.assertEqual(Teacher.query.count(), 0)

    def test_staff_form_defaults_to_teacher(self):
        self.assertEnvelope(self.post('staff', self.payload()), 201)
        self.assertEqual(Teacher.query.count(), 1)

    def test_staff_form_rejects_child(self):
        self.assertEnvelope(self.post('staff', self.payload(category='child')), 422, False)

    def test_unknown_category(self):
        self.assertEnvelope(self.post('nurse', self.payload()), 404, False)

    def test_photo_saved(self):
        photo = {
            'data': 'data:image/png;base64,' + base64.b64encode(b'fake-png').decode(),
            'name': 'card.png',
        }
        self.assertEnvelope(self.post('child', self.payload(aadharPhoto=photo)), 201)
        child = Child.query.one()
        self.assertTrue(child.aadhar_photo.startswith('child_aadhar/'))
        self.assertTrue(child.aadhar_photo.endswith('.png'))
        self.assertIsNone(child.shramik_photo)
        with open(os.path.join(self.upload_dir, child.aadhar_photo), 'rb') as f:
            self.assertEqual(f.read(), b'fake-png')

    def test_bad_photo_data(self):
        data = self.payload(shramikPhoto='%%% not base64 %%%')
        self.assertEnvelope(self.post('child', data), 422, False)
        self.assertEqual(Child.query.count(), 0)

    def uploaded_files(self):
        return [name for _, _, files in os.walk(self.upload_dir) for name in files]

    def photo(self, name='card.png'):
        return {'data': base64.b64encode(b'fake-png').decode(), 'name': name}

    def test_rejected_second_photo_removes_first(self):
        data = self.payload(aadharPhoto=self.photo(), shramikPhoto='%%%')
        self.assertEnvelope(self.post('child', data), 422, False)
        self.assertEqual(self.uploaded_files(), [])
        self.assertEqual(Child.query.count(), 0)

    def test_non_text_photo_name_falls_back_to_jpg(self):
        self.assertEnvelope(self.post('child', self.payload(aadharPhoto=self.photo(name=5))), 201)
        self.assertTrue(Child.query.one().aadhar_photo.endswith('.jpg'))

    def test_unique_constraint_catches_missed_duplicate(self):
        self.make_screening('child', self.doctor, mobile_no='9123456780')
        data = self.payload(aadharPhoto=self.photo(), shramikPhoto=self.photo())
        # Another request inserted the same number after the lookup ran
        with mock.patch('screenings.mobile_taken', return_value=False):
            body = self.assertEnvelope(self.post('child', data), 409, False)
        self.assertEqual(body['message'], DUPLICATE_MOBILE)
        self.assertEqual(self.uploaded_files(), [])
        self.assertEqual(Child.query.count(), 1)


class TestDoctorAppChildReport(ApiTestCase):

    def test_add_child_report_uses_query_doctor(self):
        doctor = self.make_doctor()
        data = {
            'name': 'Ravi',
            'age': 7,
            'gender': FEMALE,
            'fatherName': 'Suresh',
            'mobileNo': '9988776655',
            'schoolName': 'School',
            'heartStatus': SUSPICIOUS,
            'dr_id': 12345,
            'haveAadhar': 'no',
            'haveShramik': 'no',
        }
        response = self.client.post(f'/api/doctor?action=add_child_report&doctor_id={doctor.id}', json=data)
        body = self.assertEnvelope(response, 201)
        self.assertEqual(db.session.get(Child, body['data']['id']).doctor_id, doctor.id)

    def test_add_child_report_requires_post(self):
        doctor = self.make_doctor()
        response = self.client.get(f'/api/doctor?action=add_child_report&doctor_id={doctor.id}')
        self.assertEnvelope(response, 405, False)
