from functools import wraps
from flask import request, jsonify, current_app
from meetbook.errors import AuthorizationError

ADMIN_HEADER = 'X-Admin-Password'

def authorize(supplied, expected) -> bool:
    """Plain equality against the configured shared secret."""
    # NOTE: not constant-time, no hashing, no rate limiting
    if not expected or supplied is None:
        return False
    return supplied == expected

def get_admin_credential():
    # Header first (lookup is case-insensitive); empty values fall through
    password = request.headers.get(ADMIN_HEADER)

    # GET requests (CSV download links) may carry it in the query string
    if not password and request.method == 'GET':
        password = request.args.get('password')

    # Legacy clients post it inside the JSON body
    if not password:
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            password = data.get('password')

    return password

def admin_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        if not authorize(get_admin_credential(), current_app.config.get('ADMIN_PASSWORD')):
            current_app.logger.warning(f"Rejected admin request: {request.method} {request.path}")
            return jsonify(AuthorizationError('Invalid admin password').to_dict()), 401
        return f(*args, **kwargs)
    return decorated
