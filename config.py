# ======================================
# Configuration
# ======================================

import os

basedir = os.path.abspath(os.path.dirname(__file__))
db_dir = os.path.join(basedir, 'instance')


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL', f"sqlite:///{os.path.join(db_dir, 'dhadkan.db')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Base64 photos arrive inside JSON bodies
    MAX_CONTENT_LENGTH = 20 * 1024 * 1024
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', os.path.join(basedir, 'uploads'))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    PAGE_SIZE_LIMIT = 100
