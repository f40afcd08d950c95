# mazao/routes/farmer/crop_routes.py

from flask import Blueprint, request
from flask_jwt_extended import current_user

from mazao.errors import respond
from mazao.identity import require_principal
from mazao.mongo import get_store
from mazao.services.farmer.crop_service import CropService

# ======================================================
# CROPS  →  /api/crops/*
# Farmers see and touch their own crops; admins see all.
# ======================================================
crop_bp = Blueprint("crop_bp", __name__, url_prefix="/api/crops")
crop_bp.before_request(require_principal)


def _service() -> CropService:
    return CropService(get_store())


@crop_bp.get("/")
def list_crops():
    return respond(_service().list_crops(current_user, request.args))


@crop_bp.post("/")
def create_crop():
    result = _service().create_crop(current_user, request.get_json(silent=True))
    return respond(result, 201, "Crop created successfully")


# ------------------  STATS (before /<id>) ------------------
@crop_bp.get("/stats/summary")
def stats_summary():
    return respond(_service().stats_summary(current_user))


@crop_bp.get("/<crop_id>")
def get_crop(crop_id):
    return respond(_service().get_crop(current_user, crop_id))


@crop_bp.put("/<crop_id>")
def update_crop(crop_id):
    result = _service().update_crop(current_user, crop_id, request.get_json(silent=True))
    return respond(result, message="Crop updated successfully")


@crop_bp.delete("/<crop_id>")
def delete_crop(crop_id):
    result = _service().delete_crop(current_user, crop_id)
    return respond(result, message="Crop deleted successfully")
