#======================================================================================
#
# ADMIN CATALOG: packages, assets and farm media
#
#=======================================================================================
from flask import jsonify, request, Blueprint, current_app, send_from_directory
from flask_login import current_user
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Asset, FarmMedia, InvestmentPackage, User
from utils import admin_required
from workflows.catalog import (
    create_asset, create_package, delete_farm_media, delete_package, remove_media_file, save_farm_media,
    update_asset, update_package,
)
from workflows.errors import NotFoundError
from workflows.investments import get_package_or_404
import logging

logger = logging.getLogger(__name__)

catalog_bp = Blueprint('admin_catalog', __name__)


def _commit(success_body, status=200, on_success=None, on_failure=None):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Catalog update failed: {e}")
        if on_failure:
            on_failure()
        return jsonify({"error": str(e)}), 500
    if on_success:
        on_success()
    return jsonify(success_body() if callable(success_body) else success_body), status


#============================================================================================================
#     PACKAGES
#============================================================================================================

@catalog_bp.route("/api/admin/packages", methods=["GET"])
@admin_required
def list_packages():
    packages = InvestmentPackage.query.order_by(InvestmentPackage.created_at.desc()).all()
    return jsonify({"packages": [p.to_dict() for p in packages]}), 200


@catalog_bp.route("/api/admin/packages", methods=["POST"])
@admin_required
def create_package_route():
    package = create_package(request.get_json(silent=True) or {})
    logger.info(f"Admin {current_user.id} created package {package.name}")
    return _commit(lambda: {"message": "Package created successfully", "package": package.to_dict()}, 201)


@catalog_bp.route("/api/admin/packages/<int:package_id>", methods=["PUT", "PATCH"])
@admin_required
def update_package_route(package_id):
    package = get_package_or_404(package_id)
    update_package(package, request.get_json(silent=True) or {})
    return _commit(lambda: {"message": "Package updated successfully", "package": package.to_dict()})


@catalog_bp.route("/api/admin/packages/<int:package_id>/toggle", methods=["POST"])
@admin_required
def toggle_package(package_id):
    package = get_package_or_404(package_id)
    package.is_active = not package.is_active
    return _commit(lambda: {"package": package.to_dict()})


@catalog_bp.route("/api/admin/packages/<int:package_id>", methods=["DELETE"])
@admin_required
def delete_package_route(package_id):
    package = get_package_or_404(package_id)
    delete_package(package)
    logger.info(f"Admin {current_user.id} deleted package {package_id}")
    return _commit({"message": "Package deleted successfully"})


#============================================================================================================
#     ASSETS
#============================================================================================================

@catalog_bp.route("/api/admin/assets", methods=["GET"])
@admin_required
def list_assets():
    q = request.args.get("q", "").strip()
    query = Asset.query.outerjoin(User, Asset.investor_id == User.id)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            Asset.asset_name.ilike(like),
            Asset.unique_tag_id.ilike(like),
            User.email.ilike(like),
        ))
    assets = query.order_by(Asset.created_at.desc()).all()
    return jsonify({"assets": [a.to_dict() for a in assets]}), 200


@catalog_bp.route("/api/admin/assets", methods=["POST"])
@admin_required
def create_asset_route():
    asset = create_asset(request.get_json(silent=True) or {})
    return _commit(lambda: {"message": "Asset created successfully", "asset": asset.to_dict()}, 201)


@catalog_bp.route("/api/admin/assets/<int:asset_id>", methods=["PUT", "PATCH"])
@admin_required
def update_asset_route(asset_id):
    asset = db.session.get(Asset, asset_id)
    if not asset:
        raise NotFoundError("Asset not found")
    update_asset(asset, request.get_json(silent=True) or {})
    return _commit(lambda: {"message": "Asset updated successfully", "asset": asset.to_dict()})


@catalog_bp.route("/api/admin/assets/<int:asset_id>", methods=["DELETE"])
@admin_required
def delete_asset_route(asset_id):
    asset = db.session.get(Asset, asset_id)
    if not asset:
        raise NotFoundError("Asset not found")
    db.session.delete(asset)
    return _commit({"message": "Asset deleted successfully"})


#============================================================================================================
#     FARM MEDIA
#============================================================================================================

@catalog_bp.route("/api/admin/media", methods=["GET"])
@admin_required
def list_media():
    farm_id = request.args.get("farmId", type=int)
    query = FarmMedia.query
    if farm_id:
        query = query.filter_by(farm_id=farm_id)
    media = query.order_by(FarmMedia.created_at.desc()).all()
    return jsonify({"media": [m.to_dict() for m in media]}), 200


@catalog_bp.route("/api/admin/media", methods=["POST"])
@admin_required
def upload_media():
    """Multipart form: ``farmId``, ``file`` and optional title/description/releaseDate."""
    media = save_farm_media(
        request.form.get("farmId", type=int),
        request.files.get("file"),
        request.form,
        uploader_id=current_user.id,
    )
    stored_name = media.file_name
    return _commit(
        lambda: {"message": "Media uploaded successfully", "media": media.to_dict()},
        201,
        on_failure=lambda: remove_media_file(stored_name),
    )


@catalog_bp.route("/api/admin/media/<int:media_id>", methods=["DELETE"])
@admin_required
def delete_media(media_id):
    media = db.session.get(FarmMedia, media_id)
    if not media:
        raise NotFoundError("Media not found")
    stored_name = delete_farm_media(media)
    return _commit({"message": "Media deleted"}, on_success=lambda: remove_media_file(stored_name))


@catalog_bp.route("/media/<path:filename>", methods=["GET"])
def serve_media(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
