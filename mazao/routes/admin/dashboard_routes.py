# mazao/routes/admin/dashboard_routes.py

from dataclasses import asdict

from flask import Blueprint

from mazao.errors import Result, respond
from mazao.identity import require_admin
from mazao.mongo import get_store
from mazao.services.admin.dashboard_service import DashboardService

dashboard_bp = Blueprint(
    "admin_dashboard_bp",
    __name__,
    url_prefix="/api/dashboard",
)
dashboard_bp.before_request(require_admin)


def _service() -> DashboardService:
    return DashboardService(get_store())


# ----------------------------
# HEADLINE NUMBERS
# ----------------------------
@dashboard_bp.get("/stats")
def stats():
    return respond(Result.success(asdict(_service().stats())))


@dashboard_bp.get("/overview")
def overview():
    return respond(Result.success(_service().overview().to_dict()))


# ----------------------------
# CHART DATA
# ----------------------------
@dashboard_bp.get("/crops/distribution")
def crop_distribution():
    return respond(Result.success(_service().crop_distribution()))


@dashboard_bp.get("/activity/recent")
def recent_activity():
    return respond(Result.success(_service().recent_activity()))


@dashboard_bp.get("/farmers/regions")
def farmers_by_region():
    return respond(Result.success(_service().farmers_by_region()))
