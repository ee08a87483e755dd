# Overview: Flask API routes for categories and suppliers.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..services import catalog_service


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.get("/categories")
def list_categories_route():
    return jsonify(catalog_service.list_categories())


@catalog_bp.post("/categories")
@require_auth
def create_category_route():
    category = catalog_service.create_category(request.get_json(silent=True) or {})
    return jsonify({"id": category.id, "name": category.name, "message": "Category created"}), 201


@catalog_bp.delete("/categories/<int:category_id>")
@require_auth
def delete_category_route(category_id: int):
    catalog_service.delete_category(category_id)
    return jsonify({"message": "Category deleted"}), 200


@catalog_bp.get("/suppliers")
def list_suppliers_route():
    return jsonify(catalog_service.list_suppliers())


@catalog_bp.post("/suppliers")
@require_auth
def create_supplier_route():
    supplier = catalog_service.create_supplier(request.get_json(silent=True) or {})
    return jsonify({"id": supplier.id, "name": supplier.name, "message": "Supplier created"}), 201


@catalog_bp.delete("/suppliers/<int:supplier_id>")
@require_auth
def delete_supplier_route(supplier_id: int):
    catalog_service.delete_supplier(supplier_id)
    return jsonify({"message": "Supplier deleted"}), 200
