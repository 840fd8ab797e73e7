# ======================================
# Admin dashboard statistics
# ======================================

from collections import OrderedDict
from datetime import datetime, timedelta

from flask import Blueprint
from sqlalchemy import func

from models import db, Child, Doctor, SCREENING_MODELS, SUSPICIOUS, NOT_SUSPICIOUS
from queries import (
    ACTIVE_WINDOW,
    AGE_GROUP_ORDER,
    TREND_MONTHS,
    age_group,
    bucket_by_month,
    bucket_by_weekday,
    count_rows,
    doctor_screening_stats,
    healthy_count,
    month_start,
    months_ago,
    percentage,
    screening_union,
    start_of_day,
    status_totals,
    suspicious_count,
    top_doctors,
    week_start,
)
from responses import format_date, success_response

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api')

# Response keys per category, kept from the original dashboard payload
CATEGORY_KEYS = {
    'child': ('totalChildrenScreened', 'childrenPositiveCases', 'childrenHealthyCases'),
    'teacher': ('totalTeachersScreened', 'teachersPositiveCases', 'teachersHealthyCases'),
    'employee': ('totalEmployeesScreened', 'employeesPositiveCases', 'employeesHealthyCases'),
}

STATUS_LABELS = {
    NOT_SUSPICIOUS: 'स्वस्थ',
    SUSPICIOUS: 'असामान्य',
}
UNKNOWN_LABEL = 'अज्ञात'

RECENT_CHILDREN_LIMIT = 100


def _count_between(start, end=None):
    """Screenings across every category with ``start <= created_at < end``."""
    total = 0
    for model in SCREENING_MODELS.values():
        criteria = [model.created_at >= start]
        if end is not None:
            criteria.append(model.created_at < end)
        total += count_rows(model, *criteria)
    return total


def gender_stats():
    screenings = screening_union()
    rows = (
        db.session.query(
            screenings.c.gender,
            func.count(screenings.c.id),
            suspicious_count(screenings.c.heart_status),
            healthy_count(screenings.c.heart_status),
        )
        .group_by(screenings.c.gender)
        .order_by(screenings.c.gender)
        .all()
    )
    return [
        {
            'gender': gender,
            'total': int(total),
            'suspicious': int(suspicious),
            'healthy': int(healthy),
            'suspiciousPercentage': percentage(int(suspicious), int(total)),
        }
        for gender, total, suspicious, healthy in rows
    ]


def age_group_stats():
    rows = (
        db.session.query(
            Child.age,
            func.count(Child.id),
            suspicious_count(Child.heart_status),
            healthy_count(Child.heart_status),
        )
        .group_by(Child.age)
        .all()
    )

    groups = OrderedDict()
    for age, total, suspicious, healthy in rows:
        label = age_group(age)
        bucket = groups.setdefault(label, {'ageGroup': label, 'total': 0, 'suspicious': 0, 'healthy': 0})
        bucket['total'] += int(total)
        bucket['suspicious'] += int(suspicious)
        bucket['healthy'] += int(healthy)

    result = []
    for label in AGE_GROUP_ORDER:
        if label in groups:
            bucket = groups[label]
            bucket['suspiciousPercentage'] = percentage(bucket['suspicious'], bucket['total'])
            result.append(bucket)
    return result


def monthly_trends(now):
    screenings = screening_union(since=months_ago(now, TREND_MONTHS))
    rows = db.session.query(screenings.c.created_at, screenings.c.heart_status).all()
    return bucket_by_month(rows)


def recent_children(limit=RECENT_CHILDREN_LIMIT):
    rows = (
        db.session.query(Child, Doctor.doctor_name)
        .outerjoin(Doctor, Child.doctor_id == Doctor.id)
        .order_by(Child.created_at.desc(), Child.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            'id': child.id,
            'name': child.name,
            'age': int(child.age or 0),
            'parentName': child.father_name,
            'phone': child.mobile_no,
            'status': STATUS_LABELS.get(child.heart_status, UNKNOWN_LABEL),
            'heartStatus': child.heart_status,
            'doctorName': doctor_name,
            'screeningDate': format_date(child.created_at),
        }
        for child, doctor_name in rows
    ]


def average_age():
    value = db.session.query(func.avg(Child.age)).filter(Child.age.isnot(None)).scalar()
    return round(float(value), 1) if value else 0


def most_active_hospital():
    stats = doctor_screening_stats(screening_union())
    screenings = func.coalesce(func.sum(stats.c.total), 0).label('screenings')
    row = (
        db.session.query(Doctor.hospital_name, screenings)
        .outerjoin(stats, stats.c.doctor_id == Doctor.id)
        .filter(Doctor.hospital_name.isnot(None), Doctor.hospital_name != '')
        .group_by(Doctor.hospital_name)
        .order_by(screenings.desc(), Doctor.hospital_name)
        .first()
    )
    if not row:
        return None
    return {'name': row.hospital_name, 'screenings': int(row.screenings)}


def screenings_by_day(now):
    screenings = screening_union(since=now - ACTIVE_WINDOW)
    timestamps = [ts for (ts,) in db.session.query(screenings.c.created_at)]
    return bucket_by_weekday(timestamps)


def dashboard_stats(now=None):
    now = now or datetime.now()
    data = {}

    total_screenings = total_positive = total_healthy = 0
    for category, keys in CATEGORY_KEYS.items():
        totals = status_totals(SCREENING_MODELS[category])
        data.update(zip(keys, totals))
        total, positive, healthy = totals
        total_screenings += total
        total_positive += positive
        total_healthy += healthy

    this_week_start = week_start(now)
    last_week_start = this_week_start - timedelta(days=7)
    this_week = _count_between(this_week_start)
    last_week = _count_between(last_week_start, this_week_start)

    active = screening_union(since=now - ACTIVE_WINDOW)
    active_doctors = db.session.query(func.count(func.distinct(active.c.doctor_id))).scalar() or 0

    data.update({
        'totalScreenings': total_screenings,
        'totalPositiveCases': total_positive,
        'totalHealthyCases': total_healthy,
        'todayScreenings': _count_between(start_of_day(now)),
        'totalDoctors': Doctor.query.count(),
        'activeDoctors': int(active_doctors),

        'thisWeekScreenings': this_week,
        'thisMonthScreenings': _count_between(month_start(now)),
        'lastWeekScreenings': last_week,
        'weeklyGrowth': percentage(this_week - last_week, last_week),

        'healthyPercentage': percentage(total_healthy, total_screenings),
        'suspiciousPercentage': percentage(total_positive, total_screenings),

        'genderStats': gender_stats(),
        'ageGroups': age_group_stats(),
        'monthlyTrends': monthly_trends(now),
        'topDoctors': top_doctors(5),
        'recentChildren': recent_children(),

        'averageAge': average_age(),
        'mostActiveHospital': most_active_hospital(),
        'screeningsByDay': screenings_by_day(now),
    })
    return data


@dashboard_bp.route('/dashboard', methods=['GET'])
def dashboard():
    return success_response(dashboard_stats(), 'Dashboard statistics retrieved successfully')
