from flask_login import login_required

from ...models.people import utcnow
from ...services.reporting import dashboard_for
from ..auth.routes import current_principal
from . import bp


@bp.get("/")
@login_required
def index():
    return dashboard_for(current_principal(), utcnow())
