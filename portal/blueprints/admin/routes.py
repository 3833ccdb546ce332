from flask import request
from flask_login import current_user, login_required

from ...actions import add_timeslot, create_department
from ...services.reporting import counts_by_department, directory_query
from ..auth.routes import respond, role_required
from . import bp


@bp.post("/departments")
@login_required
def departments():
    return respond(create_department(request.form, current_user))


@bp.get("/departments")
@login_required
@role_required("admin")
def department_counts():
    return {"items": counts_by_department()}


@bp.post("/courses/<int:course_id>/timeslots")
@login_required
def create_timeslot(course_id):
    form = request.form.to_dict()
    form["courseId"] = str(course_id)
    return respond(add_timeslot(form, current_user))


@bp.get("/users")
@login_required
@role_required("admin")
def users():
    args = request.args
    search = (args.get("q") or "").strip()
    query = directory_query(search, args.get("role"), args.get("sort", "created"),
                            descending=args.get("order", "desc") != "asc")
    page = query.paginate(
        page=args.get("page", 1, type=int),
        per_page=args.get("per_page", 10, type=int),
        max_per_page=100,
        error_out=False,
    )
    return {
        "items": [p.to_dict() for p in page.items],
        "q": search,
        "page": page.page, "per_page": page.per_page,
        "total": page.total, "pages": page.pages,
    }
