# ======================================
# Doctor APIs: registration, management and the doctor app
# ======================================

from datetime import datetime

from flask import Blueprint, current_app, request
from sqlalchemy import func, or_
from werkzeug.security import generate_password_hash

from errors import ApiError, ConflictError, NotFoundError, ValidationError
from models import db, Child, Doctor, SCREENING_MODELS, STAFF_CATEGORIES
from queries import (
    ACTIVE_WINDOW,
    TREND_MONTHS,
    contains,
    count_rows,
    doctor_screening_stats,
    months_ago,
    paginate,
    screening_to_dict,
    screening_union,
    start_of_day,
    status_totals,
    top_doctors,
    week_start,
)
from responses import DISPLAY_DATETIME, NEVER, format_date, success_response
from screenings import create_screening
from validators import (
    pagination_args,
    positive_int_arg,
    require_fields,
    require_json,
    validate_email,
    validate_int_range,
    validate_length,
    validate_password,
    validate_phone,
)

doctors_bp = Blueprint('doctors', __name__, url_prefix='/api')

ACTIVE = 'सक्रिय'
INACTIVE = 'निष्क्रिय'


# ---------- Doctor records ----------

def _optional(value):
    value = str(value).strip() if value is not None else ''
    return value or None


def _check_unique(email=None, phone_no=None, exclude_id=None):
    checks = [
        (Doctor.email, email, 'Doctor with this email already exists'),
        (Doctor.phone_no, phone_no, 'Doctor with this phone number already exists'),
    ]
    for column, value, message in checks:
        if value is None:
            continue
        query = Doctor.query.filter(column == value)
        if exclude_id is not None:
            query = query.filter(Doctor.id != exclude_id)
        if query.first():
            raise ConflictError(message)


def create_doctor(data):
    require_fields(data, ['doctorName', 'email', 'phoneNo', 'password'])

    name = validate_length(data['doctorName'], 2, 100, 'doctorName')
    email = validate_email(data['email'])
    phone_no = validate_phone(data['phoneNo'])
    password = validate_password(data['password'])
    experience = validate_int_range(data.get('experience') or 0, 0, 50, 'experience')

    _check_unique(email=email, phone_no=phone_no)

    doctor = Doctor(
        doctor_name=name,
        hospital_type=_optional(data.get('hospitalType')),
        hospital_name=_optional(data.get('hospitalname')),
        phone_no=phone_no,
        experience=experience,
        email=email,
        password=generate_password_hash(password),
    )
    db.session.add(doctor)
    db.session.commit()
    current_app.logger.info('New doctor added: ID %s, email %s', doctor.id, doctor.email)
    return doctor


def update_doctor(data):
    doctor_id = data.get('id')
    if doctor_id in (None, ''):
        raise ValidationError('Doctor ID is required')
    doctor_id = validate_int_range(doctor_id, 1, 2 ** 31 - 1, 'doctor ID')

    doctor = db.session.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError('Doctor not found')

    changes = {}
    if data.get('doctorName'):
        changes['doctor_name'] = validate_length(data['doctorName'], 2, 100, 'doctorName')
    if 'hospitalType' in data:
        changes['hospital_type'] = _optional(data['hospitalType'])
    if 'hospitalname' in data:
        changes['hospital_name'] = _optional(data['hospitalname'])
    if data.get('phoneNo'):
        changes['phone_no'] = validate_phone(data['phoneNo'])
        _check_unique(phone_no=changes['phone_no'], exclude_id=doctor_id)
    if data.get('experience') not in (None, ''):
        changes['experience'] = validate_int_range(data['experience'], 0, 50, 'experience')
    if data.get('email'):
        changes['email'] = validate_email(data['email'])
        _check_unique(email=changes['email'], exclude_id=doctor_id)
    if data.get('password'):
        changes['password'] = generate_password_hash(validate_password(data['password']))

    if not changes:
        raise ValidationError('No fields to update')

    for attr, value in changes.items():
        setattr(doctor, attr, value)
    doctor.updated_at = datetime.now()
    db.session.commit()
    current_app.logger.info('Doctor %s updated: %s', doctor.id, ', '.join(sorted(changes)))
    return doctor


def count_dependent_screenings(doctor_id):
    return sum(
        count_rows(model, model.doctor_id == doctor_id)
        for model in SCREENING_MODELS.values()
    )


def delete_doctor(doctor_id):
    if doctor_id <= 0:
        raise ValidationError('Valid doctor ID is required')

    doctor = db.session.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError('Doctor not found')

    screenings = count_dependent_screenings(doctor_id)
    if screenings > 0:
        raise ConflictError(
            f'Cannot delete doctor {doctor.doctor_name} as they have {screenings} '
            'screening records. Please transfer or delete the records first.'
        )

    name = doctor.doctor_name
    db.session.delete(doctor)
    db.session.commit()
    current_app.logger.info('Doctor %s (%s) deleted', doctor_id, name)
    return {'doctorId': doctor_id, 'doctorName': name}


# ---------- Doctor listings ----------

def doctors_with_stats(*criteria):
    stats = doctor_screening_stats(screening_union())
    rows = (
        db.session.query(
            Doctor,
            stats.c.total,
            stats.c.healthy,
            stats.c.suspicious,
            stats.c.last_screening,
        )
        .outerjoin(stats, stats.c.doctor_id == Doctor.id)
        .filter(*criteria)
        .order_by(Doctor.created_at.desc(), Doctor.id.desc())
        .all()
    )

    active_since = datetime.now() - ACTIVE_WINDOW
    doctors = []
    for doctor, total, healthy, suspicious, last_screening in rows:
        item = doctor.to_dict()
        item.update({
            'totalScreenings': int(total or 0),
            'healthyFound': int(healthy or 0),
            'suspiciousFound': int(suspicious or 0),
            'lastScreening': format_date(last_screening, default=NEVER),
            'status': ACTIVE if last_screening and last_screening >= active_since else INACTIVE,
            'joiningDate': format_date(doctor.created_at),
        })
        doctors.append(item)
    return doctors


def doctor_list():
    doctors = Doctor.query.order_by(Doctor.doctor_name.asc()).all()
    return [
        {
            'id': d.id,
            'doctorName': d.doctor_name,
            'hospitalname': d.hospital_name,
            'email': d.email,
            'phoneNo': d.phone_no,
        }
        for d in doctors
    ]


def doctor_detail(doctor_id):
    if doctor_id <= 0:
        raise ValidationError('Valid doctor ID is required')
    doctor = db.session.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError('Doctor not found')

    screenings = screening_union(doctor_id=doctor_id)
    total, suspicious, healthy = status_totals(screenings.c)
    last_screening = db.session.query(func.max(screenings.c.created_at)).scalar()
    recent = (
        db.session.query(screenings)
        .order_by(screenings.c.created_at.desc())
        .limit(10)
        .all()
    )

    detail = doctor.to_dict()
    detail.update({
        'totalScreenings': total,
        'healthyFound': healthy,
        'suspiciousFound': suspicious,
        'lastScreening': format_date(last_screening, DISPLAY_DATETIME, NEVER),
        'recentScreenings': [
            {
                'name': row.name,
                'age': row.age,
                'gender': row.gender,
                'heartStatus': row.heart_status,
                'category': row.category,
                'createdat': format_date(row.created_at),
            }
            for row in recent
        ],
    })
    return detail


def search_doctors():
    term = request.args.get('q', '').strip()
    hospital_type = request.args.get('hospital_type', '').strip()

    criteria = []
    if term:
        criteria.append(or_(
            contains(Doctor.doctor_name, term),
            contains(Doctor.hospital_name, term),
            contains(Doctor.email, term),
        ))
    if hospital_type:
        criteria.append(Doctor.hospital_type == hospital_type)
    return doctors_with_stats(*criteria)


def doctor_overview():
    now = datetime.now()
    total_doctors = Doctor.query.count()
    active = screening_union(since=now - ACTIVE_WINDOW)
    active_doctors = db.session.query(func.count(func.distinct(active.c.doctor_id))).scalar() or 0
    total_screenings = count_rows(screening_union().c)

    avg_experience = (
        db.session.query(func.avg(Doctor.experience))
        .filter(Doctor.experience.isnot(None))
        .scalar()
    )

    hospital_types = (
        db.session.query(Doctor.hospital_type, func.count(Doctor.id))
        .filter(Doctor.hospital_type.isnot(None), Doctor.hospital_type != '')
        .group_by(Doctor.hospital_type)
        .order_by(Doctor.hospital_type)
        .all()
    )

    recent = Doctor.query.order_by(Doctor.created_at.desc(), Doctor.id.desc()).limit(5).all()

    registrations = {}
    since = months_ago(now, TREND_MONTHS)
    for (created_at,) in db.session.query(Doctor.created_at).filter(Doctor.created_at >= since):
        key = created_at.strftime('%Y-%m')
        entry = registrations.setdefault(key, {
            'month': key,
            'monthName': created_at.strftime('%B %Y'),
            'registrations': 0,
        })
        entry['registrations'] += 1

    return {
        'totalDoctors': total_doctors,
        'activeDoctors': int(active_doctors),
        'inactiveDoctors': total_doctors - int(active_doctors),
        'totalScreenings': total_screenings,
        'averageExperience': round(float(avg_experience), 1) if avg_experience is not None else 0,
        'hospitalTypes': [{'hospitalType': t, 'count': c} for t, c in hospital_types],
        'topDoctors': top_doctors(5),
        'recentDoctors': [
            {
                'id': d.id,
                'doctorName': d.doctor_name,
                'hospitalname': d.hospital_name,
                'phoneNo': d.phone_no,
                'email': d.email,
                'createdAt': format_date(d.created_at),
            }
            for d in recent
        ],
        'monthlyTrends': [registrations[k] for k in sorted(registrations)],
        'averageScreeningsPerDoctor': round(total_screenings / total_doctors, 1) if total_doctors else 0,
    }


# ---------- Doctor statistics for the doctor app ----------

def doctor_statistics(doctor_id):
    now = datetime.now()
    children_total, children_positive, _ = status_totals(Child, Child.doctor_id == doctor_id)
    today = count_rows(Child, Child.doctor_id == doctor_id, Child.created_at >= start_of_day(now))
    this_week = count_rows(Child, Child.doctor_id == doctor_id, Child.created_at >= week_start(now))

    staff = {}
    staff_positive = 0
    for category in STAFF_CATEGORIES:
        model = SCREENING_MODELS[category]
        total, suspicious, _ = status_totals(model, model.doctor_id == doctor_id)
        staff[category] = total
        staff_positive += suspicious

    return {
        'totalChildrenScreened': children_total,
        'positiveCases': children_positive,
        'todayScreenings': today,
        'reportsThisWeek': this_week,
        'pendingReports': 0,
        'totalTeachers': staff['teacher'],
        'totalEmployees': staff['employee'],
        'totalStaff': staff['teacher'] + staff['employee'],
        'staffPositiveCases': staff_positive,
    }


def _doctor_or_404(doctor_id):
    if doctor_id <= 0:
        raise ValidationError('Invalid doctor ID')
    doctor = db.session.get(Doctor, doctor_id)
    if not doctor:
        raise NotFoundError('Doctor not found')
    return doctor


# ======================================
# Registration
# ======================================

@doctors_bp.route('/doctors/register', methods=['POST'])
def register_doctor():
    doctor = create_doctor(require_json())
    return success_response(doctor.to_dict(), 'Doctor added successfully', 201)


# ======================================
# Doctor management (admin)
# ======================================

@doctors_bp.route('/doctor-management', methods=['GET'])
def doctor_management_get():
    action = request.args.get('action', '')
    if action == 'stats':
        return success_response(doctor_overview(), 'Doctor statistics retrieved successfully')
    if action == 'list':
        return success_response(doctor_list(), 'Doctors list retrieved successfully')
    if action == 'detail':
        return success_response(
            doctor_detail(positive_int_arg('id')), 'Doctor details retrieved successfully'
        )
    if action == 'search':
        return success_response(search_doctors(), 'Search results retrieved successfully')
    return success_response(doctors_with_stats(), 'All doctors retrieved successfully')


@doctors_bp.route('/doctor-management', methods=['POST'])
def doctor_management_post():
    if request.args.get('action') != 'add':
        raise ValidationError('Invalid POST action')
    doctor = create_doctor(require_json())
    return success_response(
        {'doctor': doctor.to_dict(), 'id': doctor.id}, 'Doctor added successfully', 201
    )


@doctors_bp.route('/doctor-management', methods=['PUT'])
def doctor_management_put():
    if request.args.get('action') != 'update':
        raise ValidationError('Invalid PUT action')
    doctor = update_doctor(require_json())
    return success_response({'doctor': doctor.to_dict()}, 'Doctor updated successfully')


@doctors_bp.route('/doctor-management', methods=['DELETE'])
def doctor_management_delete():
    if request.args.get('action') != 'delete':
        raise ValidationError('Invalid DELETE action')
    deleted = delete_doctor(positive_int_arg('id'))
    return success_response(deleted, 'Doctor deleted successfully')


# ======================================
# Doctor app APIs
# ======================================

@doctors_bp.route('/doctor', methods=['GET', 'POST'])
def doctor_api():
    action = request.args.get('action', '')
    doctor_id = positive_int_arg('doctor_id')

    if action == 'get_doctor_profile':
        doctor = _doctor_or_404(doctor_id)
        return success_response(doctor.to_dict(), 'Doctor profile fetched successfully')

    if action == 'get_doctor_stats':
        _doctor_or_404(doctor_id)
        return success_response(doctor_statistics(doctor_id), 'Statistics fetched successfully')

    if action == 'get_children_list':
        _doctor_or_404(doctor_id)
        page, limit = pagination_args(default_limit=50)
        query = Child.query.filter(Child.doctor_id == doctor_id).order_by(
            Child.created_at.desc(), Child.id.desc()
        )
        children, pagination = paginate(query, page, limit)
        return success_response(
            {'children': [screening_to_dict(c) for c in children], 'pagination': pagination},
            'Children list fetched successfully',
        )

    if action == 'get_teacher_employee_list':
        _doctor_or_404(doctor_id)
        page, limit = pagination_args(default_limit=50)
        staff = screening_union(STAFF_CATEGORIES, doctor_id=doctor_id)
        query = db.session.query(staff).order_by(staff.c.created_at.desc(), staff.c.id.desc())
        rows, pagination = paginate(query, page, limit)
        return success_response(
            {'staff': [screening_to_dict(r) for r in rows], 'pagination': pagination},
            'Teacher and employee list fetched successfully',
        )

    if action == 'add_child_report':
        if request.method != 'POST':
            raise ApiError('Method not allowed', 405)
        _doctor_or_404(doctor_id)
        data = require_json()
        data['dr_id'] = doctor_id
        child = create_screening('child', data)
        return success_response({'id': child.id}, 'Child report added successfully', 201)

    if action == 'get_all_doctors':
        doctors = Doctor.query.order_by(Doctor.created_at.desc(), Doctor.id.desc()).all()
        return success_response([d.to_dict() for d in doctors], 'All doctors fetched successfully')

    if action == 'test':
        return success_response(
            {'timestamp': datetime.now().strftime('%Y-%m-%d %H:%M:%S')},
            'API is working correctly',
        )

    raise ValidationError('Invalid action specified')


@doctors_bp.route('/doctor-profile', methods=['GET'])
def doctor_profile():
    doctor_id = positive_int_arg('doctor_id')
    if doctor_id <= 0:
        raise ValidationError('Invalid doctor ID provided')
    doctor = _doctor_or_404(doctor_id)
    return success_response(
        {'profile': doctor.to_dict(), 'statistics': doctor_statistics(doctor_id)},
        'Doctor profile fetched successfully',
    )
