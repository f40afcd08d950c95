# mazao/routes/root/root_routes.py

from flask import Blueprint

from mazao.errors import respond, Result

# Root blueprint
root_bp = Blueprint("root", __name__)


# -----------------------------
# HEALTH / WELCOME
# -----------------------------
@root_bp.get("/")
def home():
    return respond(Result.success(), message="Welcome to the Mazao ERP API!")
