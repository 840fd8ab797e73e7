# ======================================
# Screening record intake (children / teacher / employee)
# ======================================

from flask import Blueprint, current_app
from sqlalchemy.exc import IntegrityError

from errors import ConflictError, NotFoundError, ValidationError
from models import db, Doctor, GENDERS, HEART_STATUSES, SCREENING_MODELS, STAFF_CATEGORIES, YES_NO
from responses import success_response
from uploads import remove_upload, save_base64_image
from validators import (
    require_fields,
    require_json,
    validate_choice,
    validate_int_range,
    validate_phone,
)

screenings_bp = Blueprint('screenings', __name__, url_prefix='/api/screenings')

COMMON_FIELDS = [
    'name', 'age', 'gender', 'mobileNo', 'schoolName',
    'heartStatus', 'dr_id', 'haveAadhar', 'haveShramik',
]
REQUIRED_FIELDS = {
    'child': COMMON_FIELDS + ['fatherName'],
    'teacher': COMMON_FIELDS,
    'employee': COMMON_FIELDS,
}

# "A report with this mobile number already exists. Please use a different number."
DUPLICATE_MOBILE = 'इस मोबाइल नंबर से पहले से ही एक रिपोर्ट दर्ज है। कृपया अलग मोबाइल नंबर का उपयोग करें।'

# Validation failures on intake are reported as 422
STATUS = 422


def _clean(data):
    return {
        'name': str(data['name']).strip(),
        'age': validate_int_range(data['age'], 1, 100, 'age', STATUS),
        'gender': validate_choice(data['gender'], GENDERS, 'gender', STATUS),
        'mobileNo': validate_phone(data['mobileNo'], 'mobileNo', STATUS),
        'schoolName': str(data['schoolName']).strip(),
        'heartStatus': validate_choice(data['heartStatus'], HEART_STATUSES, 'heart status', STATUS),
        'haveAadhar': validate_choice(data['haveAadhar'], YES_NO, 'aadhar availability', STATUS),
        'haveShramik': validate_choice(data['haveShramik'], YES_NO, 'shramik availability', STATUS),
        'dr_id': validate_int_range(data['dr_id'], 1, 2 ** 31 - 1, 'dr_id', STATUS),
        'notes': str(data.get('notes') or '').strip(),
    }


def mobile_taken(model, mobile_no):
    return model.query.filter_by(mobile_no=mobile_no).first() is not None


def create_screening(category, data):
    """Validate and insert one screening record of ``category``."""
    if category not in SCREENING_MODELS:
        raise NotFoundError(f'Unknown screening category: {category}')
    model = SCREENING_MODELS[category]

    require_fields(data, REQUIRED_FIELDS[category], STATUS)
    fields = _clean(data)

    if not db.session.get(Doctor, fields['dr_id']):
        raise ValidationError('Doctor not found for dr_id', STATUS)
    if mobile_taken(model, fields['mobileNo']):
        raise ConflictError(DUPLICATE_MOBILE)

    aadhar_path = save_base64_image(data.get('aadharPhoto'), 'aadhar', category)
    try:
        shramik_path = save_base64_image(data.get('shramikPhoto'), 'shramik', category)
    except ValidationError:
        remove_upload(aadhar_path)
        raise

    record = model(
        doctor_id=fields['dr_id'],
        name=fields['name'],
        age=fields['age'],
        gender=fields['gender'],
        mobile_no=fields['mobileNo'],
        school_name=fields['schoolName'],
        have_aadhar=fields['haveAadhar'],
        have_shramik=fields['haveShramik'],
        aadhar_photo=aadhar_path,
        shramik_photo=shramik_path,
        heart_status=fields['heartStatus'],
        notes=fields['notes'],
    )
    if category == 'child':
        record.father_name = str(data['fatherName']).strip()

    db.session.add(record)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        remove_upload(aadhar_path)
        remove_upload(shramik_path)
        raise ConflictError(DUPLICATE_MOBILE)

    current_app.logger.info(
        'Stored %s screening %s for doctor %s', category, record.id, record.doctor_id
    )
    return record


@screenings_bp.route('/<category>', methods=['POST'])
def add_screening(category):
    data = require_json()
    if category == 'staff':
        # Combined teacher/employee form sends its category in the body
        category = data.get('category') or 'teacher'
        if category not in STAFF_CATEGORIES:
            raise ValidationError('Invalid category value', STATUS)

    record = create_screening(category, data)
    return success_response({
        'id': record.id,
        'name': record.name,
        'age': record.age,
        'gender': record.gender,
        'mobileNo': record.mobile_no,
        'schoolName': record.school_name,
        'heartStatus': record.heart_status,
        'category': category,
    }, f'{category.capitalize()} report added successfully', 201)
