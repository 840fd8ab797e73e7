# ======================================
# Authentication API
# ======================================

import secrets

from flask import Blueprint, current_app
from werkzeug.security import check_password_hash

from errors import ApiError, ValidationError
from models import Admin, Doctor
from responses import success_response
from validators import require_fields, require_json, validate_choice, validate_email

auth_bp = Blueprint('auth', __name__, url_prefix='/api')

USER_TYPES = ('doctor', 'admin')


def _doctor_info(doctor):
    return {
        'id': doctor.id,
        'name': doctor.doctor_name,
        'email': doctor.email,
        'hospitalType': doctor.hospital_type,
        'hospitalname': doctor.hospital_name,
        'phoneNo': doctor.phone_no,
        'experience': doctor.experience,
        'userType': 'doctor',
    }


def _admin_info(admin):
    return {
        'id': admin.id,
        'name': admin.name,
        'email': admin.email,
        'role': admin.role,
        'userType': 'admin',
    }


@auth_bp.route('/login', methods=['POST'])
def login():
    data = require_json()
    require_fields(data, ['email', 'password', 'userType'])

    email = validate_email(data['email'])
    password = str(data['password']).strip()
    user_type = validate_choice(str(data['userType']).strip(), USER_TYPES, 'user type')

    if user_type == 'doctor':
        user = Doctor.query.filter_by(email=email).first()
        info = _doctor_info
    else:
        user = Admin.query.filter_by(email=email).first()
        info = _admin_info

    if not user:
        raise ApiError('User not found', 401)
    if not check_password_hash(user.password, password):
        raise ApiError('Invalid password', 401)

    current_app.logger.info('Login successful for %s %s', user_type, email)
    # Not persisted or checked anywhere else yet
    token = secrets.token_hex(32)
    return success_response(
        {'token': token, 'user': info(user)},
        'Login successful',
        token=token,
        user=info(user),
    )
