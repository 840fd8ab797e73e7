# ======================================
# Database Models
# ======================================

from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

# Single shared SQLAlchemy instance initialized in app.py
db = SQLAlchemy()

# Wire values stored as-is in the screening tables
MALE = 'पुरुष'
FEMALE = 'महिला'
GENDERS = (MALE, FEMALE)

SUSPICIOUS = 'संदिग्ध'
NOT_SUSPICIOUS = 'संदेह नहीं'
HEART_STATUSES = (SUSPICIOUS, NOT_SUSPICIOUS)

YES_NO = ('yes', 'no')


class Doctor(db.Model):
    __tablename__ = 'doctors'

    id = db.Column(db.Integer, primary_key=True)
    doctor_name = db.Column('doctorName', db.String(100), nullable=False)
    hospital_type = db.Column('hospitalType', db.String(100))
    hospital_name = db.Column('hospitalname', db.String(200))
    phone_no = db.Column('phoneNo', db.String(10), unique=True, nullable=False)
    experience = db.Column(db.Integer, default=0)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    created_at = db.Column('createdAt', db.DateTime, default=datetime.now)
    updated_at = db.Column('updatedAt', db.DateTime, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            'id': self.id,
            'doctorName': self.doctor_name,
            'hospitalType': self.hospital_type or '',
            'hospitalname': self.hospital_name or '',
            'phoneNo': self.phone_no,
            'experience': self.experience or 0,
            'email': self.email,
            'createdAt': self.created_at.strftime('%Y-%m-%d %H:%M:%S') if self.created_at else None,
            'updatedAt': self.updated_at.strftime('%Y-%m-%d %H:%M:%S') if self.updated_at else None,
        }


class Admin(db.Model):
    __tablename__ = 'admins'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), default='admin')
    created_at = db.Column('createdAt', db.DateTime, default=datetime.now)


# Screening tables share attribute names; only the stored column names differ.

class Child(db.Model):
    __tablename__ = 'children'

    id = db.Column(db.Integer, primary_key=True)
    doctor_id = db.Column('dr_id', db.Integer, db.ForeignKey('doctors.id'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    age = db.Column(db.Integer)
    gender = db.Column(db.String(10), nullable=False)
    father_name = db.Column('fatherName', db.String(100))
    mobile_no = db.Column('mobileNo', db.String(10), unique=True, nullable=False)
    school_name = db.Column('schoolName', db.String(200))
    have_aadhar = db.Column('haveAadhar', db.String(3), default='no')
    have_shramik = db.Column('haveShramik', db.String(3), default='no')
    aadhar_photo = db.Column('aadharPhoto', db.String(255))
    shramik_photo = db.Column('shramikPhoto', db.String(255))
    heart_status = db.Column('heartStatus', db.String(20), nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column('createdat', db.DateTime, default=datetime.now)

    doctor = db.relationship('Doctor')


class Teacher(db.Model):
    __tablename__ = 'teacher'

    id = db.Column('t_id', db.Integer, primary_key=True)
    doctor_id = db.Column('t_dr_id', db.Integer, db.ForeignKey('doctors.id'), nullable=False)
    name = db.Column('t_name', db.String(100), nullable=False)
    age = db.Column('t_age', db.Integer)
    gender = db.Column('t_gender', db.String(10), nullable=False)
    mobile_no = db.Column('t_mobileNo', db.String(10), unique=True, nullable=False)
    school_name = db.Column('t_schoolName', db.String(200))
    have_aadhar = db.Column('t_haveAadhar', db.String(3), default='no')
    have_shramik = db.Column('t_haveShramik', db.String(3), default='no')
    aadhar_photo = db.Column('t_aadharPhoto', db.String(255))
    shramik_photo = db.Column('t_shramikPhoto', db.String(255))
    heart_status = db.Column('t_heartStatus', db.String(20), nullable=False)
    notes = db.Column('t_notes', db.Text)
    created_at = db.Column('t_createdat', db.DateTime, default=datetime.now)

    doctor = db.relationship('Doctor')


class Employee(db.Model):
    __tablename__ = 'employee'

    id = db.Column('e_id', db.Integer, primary_key=True)
    doctor_id = db.Column('e_dr_id', db.Integer, db.ForeignKey('doctors.id'), nullable=False)
    name = db.Column('e_name', db.String(100), nullable=False)
    age = db.Column('e_age', db.Integer)
    gender = db.Column('e_gender', db.String(10), nullable=False)
    mobile_no = db.Column('e_mobileNo', db.String(10), unique=True, nullable=False)
    school_name = db.Column('e_schoolName', db.String(200))
    have_aadhar = db.Column('e_haveAadhar', db.String(3), default='no')
    have_shramik = db.Column('e_haveShramik', db.String(3), default='no')
    aadhar_photo = db.Column('e_aadharPhoto', db.String(255))
    shramik_photo = db.Column('e_shramikPhoto', db.String(255))
    heart_status = db.Column('e_heartStatus', db.String(20), nullable=False)
    notes = db.Column('e_notes', db.Text)
    created_at = db.Column('e_createdat', db.DateTime, default=datetime.now)

    doctor = db.relationship('Doctor')


SCREENING_MODELS = {
    'child': Child,
    'teacher': Teacher,
    'employee': Employee,
}

STAFF_CATEGORIES = ('teacher', 'employee')

STAFF_LABELS = {
    'teacher': 'शिक्षक',
    'employee': 'कर्मचारी',
}
