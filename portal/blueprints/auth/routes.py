from functools import wraps

from flask import abort, request
from flask_login import current_user, login_required

from ...actions import change_password, sign_in, sign_out, sign_up
from ...services.identity import resolve_principal
from . import bp


def role_required(*roles):
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated or current_user.profile is None \
                    or current_user.profile.role not in roles:
                abort(403)
            return f(*args, **kwargs)
        return wrapper
    return deco


def respond(result):
    """Form actions answer 200 on success and 400 when they report an error."""
    return result, (200 if "success" in result else 400)


def current_principal():
    return resolve_principal(current_user)


@bp.post("/signup")
def signup():
    return respond(sign_up(request.form))


@bp.post("/login")
def login():
    return respond(sign_in(request.form))


@bp.route("/logout", methods=["GET", "POST"])
@login_required
def logout():
    return respond(sign_out())


@bp.post("/account")
@login_required
def account():
    return respond(change_password(request.form, current_user))


@bp.get("/me")
@login_required
def me():
    return current_principal().to_dict()
