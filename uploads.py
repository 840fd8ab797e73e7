# ======================================
# Screening photo uploads
# ======================================

import base64
import binascii
import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from errors import ValidationError

DEFAULT_EXTENSION = 'jpg'
ALLOWED_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp'}


def _split_payload(photo):
    # Either {"data": ..., "name": ...} from the form, or a bare base64 string
    if isinstance(photo, dict):
        name = photo.get('name')
        return photo.get('data'), name if isinstance(name, str) else ''
    return photo, ''


def save_base64_image(photo, kind, category):
    """Decode an uploaded photo into ``<UPLOAD_FOLDER>/<category>_<kind>/``.

    Returns the path relative to the upload folder, or None when no photo
    was sent.
    """
    data, name = _split_payload(photo)
    if not data:
        return None
    if isinstance(data, str) and data.startswith('data:') and ',' in data:
        data = data.split(',', 1)[1]

    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise ValidationError(f'Invalid {kind} photo data', 422)
    if not content:
        raise ValidationError(f'Invalid {kind} photo data', 422)

    extension = secure_filename(name).rsplit('.', 1)[-1].lower() if '.' in name else ''
    if extension not in ALLOWED_EXTENSIONS:
        extension = DEFAULT_EXTENSION

    folder = f'{category}_{kind}'
    target_dir = os.path.join(current_app.config['UPLOAD_FOLDER'], folder)
    os.makedirs(target_dir, exist_ok=True)
    filename = f'{uuid.uuid4().hex}.{extension}'
    with open(os.path.join(target_dir, filename), 'wb') as f:
        f.write(content)
    return f'{folder}/{filename}'


def remove_upload(relative_path):
    if not relative_path:
        return
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], relative_path)
    if os.path.exists(path):
        os.remove(path)
