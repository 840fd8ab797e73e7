# ======================================
# Shared query building and aggregation helpers
# ======================================

import calendar
import math
from collections import Counter
from datetime import datetime, time, timedelta

from sqlalchemy import case, func, literal, select, union_all

from models import db, Doctor, SCREENING_MODELS, STAFF_LABELS, SUSPICIOUS, NOT_SUSPICIOUS
from responses import DISPLAY_DATE, format_date

_MISSING = object()

AGE_GROUPS = (
    ('0-5', 0, 5),
    ('6-10', 6, 10),
    ('11-15', 11, 15),
    ('16-18', 16, 18),
)
OTHER_AGE_GROUP = 'other'
AGE_GROUP_ORDER = [label for label, _, _ in AGE_GROUPS] + [OTHER_AGE_GROUP]

# Sunday first, matching the dashboard's day-of-week chart
WEEKDAYS = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')

ACTIVE_WINDOW = timedelta(days=30)
TREND_MONTHS = 6


# ---------- Pure helpers ----------

def percentage(part, whole, digits=2):
    if not whole:
        return 0
    return round(part / whole * 100, digits)


def age_group(age):
    if age is not None:
        for label, low, high in AGE_GROUPS:
            if low <= age <= high:
                return label
    return OTHER_AGE_GROUP


def total_pages(total_records, limit):
    return math.ceil(total_records / limit) if limit else 0


def start_of_day(now):
    return datetime.combine(now.date(), time.min)


def week_start(now):
    """Monday 00:00 of the ISO week containing ``now``."""
    return start_of_day(now) - timedelta(days=now.weekday())


def month_start(now):
    return start_of_day(now).replace(day=1)


def months_ago(now, months):
    month = now.month - months
    year = now.year
    while month < 1:
        month += 12
        year -= 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def bucket_by_month(rows):
    """Group ``(created_at, heart_status)`` rows into monthly totals, newest first."""
    months = {}
    for created_at, heart_status in rows:
        key = created_at.strftime('%Y-%m')
        bucket = months.setdefault(key, {
            'month': key,
            'monthName': created_at.strftime('%B %Y'),
            'total': 0,
            'suspicious': 0,
            'healthy': 0,
        })
        bucket['total'] += 1
        if heart_status == SUSPICIOUS:
            bucket['suspicious'] += 1
        elif heart_status == NOT_SUSPICIOUS:
            bucket['healthy'] += 1

    trends = []
    for key in sorted(months, reverse=True):
        bucket = months[key]
        bucket['suspiciousPercentage'] = percentage(bucket['suspicious'], bucket['total'])
        trends.append(bucket)
    return trends


def bucket_by_weekday(timestamps):
    counts = Counter(ts.isoweekday() % 7 for ts in timestamps)
    return [
        {'day': WEEKDAYS[index], 'screenings': counts[index]}
        for index in sorted(counts)
    ]


# ---------- SQL expressions ----------

LIKE_ESCAPE = '\\'


def contains(column, term):
    """Case-insensitive substring match; ``%`` and ``_`` in ``term`` are literal."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )
    return column.ilike(f'%{escaped}%', escape=LIKE_ESCAPE)


def count_if(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def suspicious_count(column):
    return count_if(column == SUSPICIOUS)


def healthy_count(column):
    return count_if(column == NOT_SUSPICIOUS)


def status_totals(source, *criteria):
    """Return ``(total, suspicious, healthy)`` for a model or a subquery's ``.c``."""
    total, suspicious, healthy = db.session.query(
        func.count(source.id),
        suspicious_count(source.heart_status),
        healthy_count(source.heart_status),
    ).filter(*criteria).one()
    return int(total), int(suspicious), int(healthy)


def count_rows(source, *criteria):
    return int(db.session.query(func.count(source.id)).filter(*criteria).scalar() or 0)


def screening_union(categories=None, doctor_id=None, since=None, name='screenings'):
    """Rows from several screening tables under one set of column names.

    Every select carries a literal ``category`` column so callers can tell
    the source table apart after the union.
    """
    selects = []
    for category in categories or SCREENING_MODELS:
        model = SCREENING_MODELS[category]
        stmt = select(
            model.id.label('id'),
            model.doctor_id.label('doctor_id'),
            model.name.label('name'),
            model.age.label('age'),
            model.gender.label('gender'),
            model.mobile_no.label('mobile_no'),
            model.school_name.label('school_name'),
            model.have_aadhar.label('have_aadhar'),
            model.have_shramik.label('have_shramik'),
            model.aadhar_photo.label('aadhar_photo'),
            model.shramik_photo.label('shramik_photo'),
            model.heart_status.label('heart_status'),
            model.notes.label('notes'),
            model.created_at.label('created_at'),
            literal(category).label('category'),
        )
        if doctor_id:
            stmt = stmt.where(model.doctor_id == doctor_id)
        if since is not None:
            stmt = stmt.where(model.created_at >= since)
        selects.append(stmt)

    if len(selects) == 1:
        return selects[0].subquery(name)
    return union_all(*selects).subquery(name)


def doctor_screening_stats(screenings, name='doctor_stats'):
    """Per-doctor totals over a screening subquery, for joining onto doctors."""
    return (
        db.session.query(
            screenings.c.doctor_id.label('doctor_id'),
            func.count(screenings.c.id).label('total'),
            suspicious_count(screenings.c.heart_status).label('suspicious'),
            healthy_count(screenings.c.heart_status).label('healthy'),
            func.max(screenings.c.created_at).label('last_screening'),
        )
        .group_by(screenings.c.doctor_id)
        .subquery(name)
    )


def top_doctors(limit=5):
    """Doctors ranked by screening volume across all categories."""
    stats = doctor_screening_stats(screening_union())
    rows = (
        db.session.query(
            Doctor.id,
            Doctor.doctor_name,
            Doctor.hospital_name,
            stats.c.total,
            stats.c.suspicious,
            stats.c.healthy,
            stats.c.last_screening,
        )
        .join(stats, stats.c.doctor_id == Doctor.id)
        .order_by(stats.c.total.desc(), Doctor.id)
        .limit(limit)
        .all()
    )
    return [
        {
            'doctorId': row.id,
            'doctorName': row.doctor_name,
            'hospitalName': row.hospital_name,
            'totalScreenings': int(row.total),
            'suspiciousFound': int(row.suspicious),
            'healthyFound': int(row.healthy),
            'successRate': percentage(int(row.healthy), int(row.total)),
            'lastScreening': format_date(row.last_screening),
        }
        for row in rows
    ]


# ---------- Row shaping ----------

def screening_to_dict(row, date_format=DISPLAY_DATE):
    """Shape an ORM screening record or a ``screening_union`` row for JSON."""
    data = {
        'id': row.id,
        'dr_id': row.doctor_id,
        'name': row.name,
        'age': int(row.age or 0),
        'gender': row.gender,
        'mobileNo': row.mobile_no,
        'schoolName': row.school_name,
        'haveAadhar': row.have_aadhar,
        'haveShramik': row.have_shramik,
        'aadharPhoto': row.aadhar_photo,
        'shramikPhoto': row.shramik_photo,
        'heartStatus': row.heart_status,
        'notes': row.notes,
        'screeningDate': format_date(row.created_at, date_format),
    }
    father_name = getattr(row, 'father_name', _MISSING)
    if father_name is not _MISSING:
        data['fatherName'] = father_name
    category = getattr(row, 'category', None)
    if category:
        data['category'] = category
        data['categoryLabel'] = STAFF_LABELS.get(category, category)
    return data


def paginate(query, page, limit):
    total = query.order_by(None).count()
    items = query.limit(limit).offset((page - 1) * limit).all()
    return items, {
        'currentPage': page,
        'totalPages': total_pages(total, limit),
        'totalRecords': total,
        'recordsPerPage': limit,
    }
