# ======================================
# Screening report listings and statistics
# ======================================

from datetime import datetime

from flask import Blueprint, request
from sqlalchemy import func, or_

from errors import NotFoundError, ValidationError
from models import db, Child, Doctor, SCREENING_MODELS, STAFF_CATEGORIES, SUSPICIOUS
from queries import (
    TREND_MONTHS,
    bucket_by_month,
    contains,
    count_if,
    doctor_screening_stats,
    months_ago,
    paginate,
    percentage,
    screening_to_dict,
    screening_union,
    status_totals,
)
from responses import DISPLAY_DATETIME, success_response
from validators import pagination_args, positive_int_arg

reports_bp = Blueprint('reports', __name__, url_prefix='/api')

HEALTHY_LABEL = 'स्वस्थ'
ABNORMAL_LABEL = 'असामान्य'


def _with_doctor(item, row):
    item.update({
        'doctorName': row.doctor_name,
        'hospitalName': row.hospital_name,
        'hospitalType': row.hospital_type,
        'diseaseFound': item['heartStatus'] == SUSPICIOUS,
        'healthStatus': ABNORMAL_LABEL if item['heartStatus'] == SUSPICIOUS else HEALTHY_LABEL,
    })
    return item


def _listing_filters():
    return (
        request.args.get('search', '').strip(),
        request.args.get('heartStatus', '').strip(),
        positive_int_arg('doctorId'),
    )


# ---------- Listings ----------

def children_reports():
    page, limit = pagination_args()
    search, heart_status, doctor_id = _listing_filters()

    query = (
        db.session.query(Child, Doctor.doctor_name, Doctor.hospital_name, Doctor.hospital_type)
        .join(Doctor, Child.doctor_id == Doctor.id)
    )
    if search:
        query = query.filter(or_(
            contains(Child.name, search),
            contains(Child.father_name, search),
            contains(Child.school_name, search),
        ))
    if heart_status:
        query = query.filter(Child.heart_status == heart_status)
    if doctor_id:
        query = query.filter(Child.doctor_id == doctor_id)

    query = query.order_by(Child.created_at.desc(), Child.id.desc())
    rows, pagination = paginate(query, page, limit)
    reports = [_with_doctor(screening_to_dict(row.Child), row) for row in rows]
    return reports, pagination


def staff_reports():
    page, limit = pagination_args()
    search, heart_status, doctor_id = _listing_filters()
    staff_type = request.args.get('staffType', '').strip()

    categories = STAFF_CATEGORIES
    if staff_type:
        if staff_type not in STAFF_CATEGORIES:
            raise ValidationError('Invalid staffType value')
        categories = (staff_type,)

    staff = screening_union(categories, doctor_id=doctor_id or None)
    query = (
        db.session.query(staff, Doctor.doctor_name, Doctor.hospital_name, Doctor.hospital_type)
        .join(Doctor, staff.c.doctor_id == Doctor.id)
    )
    if search:
        query = query.filter(or_(
            contains(staff.c.name, search),
            contains(staff.c.school_name, search),
        ))
    if heart_status:
        query = query.filter(staff.c.heart_status == heart_status)

    query = query.order_by(staff.c.created_at.desc(), staff.c.id.desc())
    rows, pagination = paginate(query, page, limit)
    reports = []
    for row in rows:
        item = _with_doctor(screening_to_dict(row), row)
        item['staffType'] = item['categoryLabel']
        reports.append(item)
    return reports, pagination


def report_details():
    category = request.args.get('category', 'child')
    record_id = positive_int_arg('id')
    if category not in SCREENING_MODELS:
        raise ValidationError('Invalid category value')
    if record_id <= 0:
        raise ValidationError(f'Valid {category} ID is required')

    record = db.session.get(SCREENING_MODELS[category], record_id)
    if not record:
        raise NotFoundError(f'{category.capitalize()} report not found')

    details = screening_to_dict(record, DISPLAY_DATETIME)
    details['category'] = category
    doctor = record.doctor
    details['doctorInfo'] = {
        'name': doctor.doctor_name,
        'hospital': doctor.hospital_name,
        'hospitalType': doctor.hospital_type,
        'email': doctor.email,
        'phone': doctor.phone_no,
    }
    return details


# ---------- Statistics ----------

def children_stats():
    total, suspicious, normal = status_totals(Child)
    doctors, schools, with_aadhar, with_shramik = db.session.query(
        func.count(func.distinct(Child.doctor_id)),
        func.count(func.distinct(Child.school_name)),
        count_if(Child.have_aadhar == 'yes'),
        count_if(Child.have_shramik == 'yes'),
    ).one()

    stats = doctor_screening_stats(screening_union(['child']))
    doctor_rows = (
        db.session.query(Doctor.id, Doctor.doctor_name, Doctor.hospital_name,
                         stats.c.total, stats.c.suspicious)
        .outerjoin(stats, stats.c.doctor_id == Doctor.id)
        .order_by(func.coalesce(stats.c.total, 0).desc(), Doctor.id)
        .all()
    )

    since = months_ago(datetime.now(), TREND_MONTHS)
    trend_rows = (
        db.session.query(Child.created_at, Child.heart_status)
        .filter(Child.created_at >= since)
        .all()
    )
    trends = [
        {'month': t['month'], 'screenings': t['total'], 'suspicious': t['suspicious']}
        for t in bucket_by_month(trend_rows)
    ]

    return {
        'stats': {
            'totalChildren': total,
            'normalCases': normal,
            'suspiciousCases': suspicious,
            'totalDoctors': int(doctors),
            'totalSchools': int(schools),
            'withAadhar': int(with_aadhar),
            'withShramik': int(with_shramik),
            'aadharPercentage': percentage(int(with_aadhar), total, 1),
            'shramikPercentage': percentage(int(with_shramik), total, 1),
            'suspiciousPercentage': percentage(suspicious, total, 1),
        },
        'doctorStats': [
            {
                'doctorId': row.id,
                'doctorName': row.doctor_name,
                'hospitalName': row.hospital_name,
                'totalScreenings': int(row.total or 0),
                'suspiciousFound': int(row.suspicious or 0),
            }
            for row in doctor_rows
        ],
        'trends': trends,
    }


def staff_stats():
    totals = {}
    for category in STAFF_CATEGORIES:
        model = SCREENING_MODELS[category]
        totals[category] = status_totals(model)
    total_teachers, suspicious_teachers, normal_teachers = totals['teacher']
    total_employees, suspicious_employees, normal_employees = totals['employee']
    total_staff = total_teachers + total_employees
    suspicious_staff = suspicious_teachers + suspicious_employees

    per_doctor = {
        category: doctor_screening_stats(
            screening_union([category], name=f'{category}_screenings'), f'{category}_stats'
        )
        for category in STAFF_CATEGORIES
    }
    teachers, employees = per_doctor['teacher'], per_doctor['employee']
    teacher_count = func.coalesce(teachers.c.total, 0)
    employee_count = func.coalesce(employees.c.total, 0)
    staff_count = (teacher_count + employee_count).label('staff_count')
    rows = (
        db.session.query(
            Doctor.id,
            Doctor.doctor_name,
            Doctor.hospital_name,
            teacher_count.label('teacher_count'),
            employee_count.label('employee_count'),
            staff_count,
            (func.coalesce(teachers.c.suspicious, 0)
             + func.coalesce(employees.c.suspicious, 0)).label('suspicious_count'),
        )
        .outerjoin(teachers, teachers.c.doctor_id == Doctor.id)
        .outerjoin(employees, employees.c.doctor_id == Doctor.id)
        .filter(teacher_count + employee_count > 0)
        .order_by(staff_count.desc(), Doctor.id)
        .all()
    )

    return {
        'stats': {
            'totalStaff': total_staff,
            'totalTeachers': total_teachers,
            'totalEmployees': total_employees,
            'normalStaff': normal_teachers + normal_employees,
            'suspiciousStaff': suspicious_staff,
            'normalTeachers': normal_teachers,
            'suspiciousTeachers': suspicious_teachers,
            'normalEmployees': normal_employees,
            'suspiciousEmployees': suspicious_employees,
            'suspiciousPercentage': percentage(suspicious_staff, total_staff, 1),
            'teacherPercentage': percentage(total_teachers, total_staff, 1),
            'employeePercentage': percentage(total_employees, total_staff, 1),
        },
        'doctorStaffStats': [
            {
                'doctorId': row.id,
                'doctorName': row.doctor_name,
                'hospitalName': row.hospital_name,
                'teacherCount': int(row.teacher_count),
                'employeeCount': int(row.employee_count),
                'totalStaffCount': int(row.staff_count),
                'suspiciousStaffCount': int(row.suspicious_count),
            }
            for row in rows
        ],
    }


def doctors_for_filter():
    stats = doctor_screening_stats(screening_union())
    rows = (
        db.session.query(Doctor.id, Doctor.doctor_name, Doctor.hospital_name, stats.c.total)
        .outerjoin(stats, stats.c.doctor_id == Doctor.id)
        .order_by(Doctor.doctor_name)
        .all()
    )
    return [
        {
            'id': row.id,
            'name': row.doctor_name,
            'hospital': row.hospital_name,
            'totalReports': int(row.total or 0),
        }
        for row in rows
    ]


@reports_bp.route('/reports', methods=['GET'])
def reports():
    action = request.args.get('action', 'getReports')

    if action == 'getReports':
        data, pagination = children_reports()
        return success_response(data, 'Children reports retrieved successfully', pagination=pagination)
    if action == 'getStaffReports':
        data, pagination = staff_reports()
        return success_response(data, 'Staff reports retrieved successfully', pagination=pagination)
    if action == 'getReportDetails':
        return success_response(report_details(), 'Report details retrieved successfully')
    if action == 'getStats':
        return success_response(children_stats(), 'Children statistics retrieved successfully')
    if action == 'getStaffStats':
        return success_response(staff_stats(), 'Staff statistics retrieved successfully')
    if action == 'getDoctors':
        return success_response(doctors_for_filter(), 'Doctors list retrieved successfully')

    raise ValidationError('Invalid action specified')
