import hmac
from functools import wraps

from flask import Blueprint, current_app, request

from makerhub.models.category import Category
from makerhub.routes.responses import (
    data_error,
    failure,
    get_repository,
    run_async,
    success,
)

admin_bp = Blueprint('admin', __name__)


def require_admin_token(view):
    """Reject requests whose ``x-admin-token`` does not match ADMIN_API_TOKEN."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get('ADMIN_API_TOKEN') or ''
        provided = (request.headers.get('x-admin-token') or '').strip()
        if not expected or not hmac.compare_digest(provided, expected):
            return failure('unauthorized', 401)
        return view(*args, **kwargs)
    return wrapper


@admin_bp.route('/categories', methods=['GET'])
@require_admin_token
def admin_get_categories():
    try:
        categories = run_async(get_repository().list_categories())
        return success([c.to_dict() for c in categories])
    except Exception as e:
        return data_error('GET /api/admin/categories', e, fallback=[])


@admin_bp.route('/categories', methods=['POST'])
@require_admin_token
def admin_upsert_categories():
    """批量新增/更新分类，请求体为 {"categories": [...]}"""
    data = request.get_json(silent=True) or {}
    raw = data.get('categories') if isinstance(data, dict) else None
    if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
        return failure('validation_error', 400)

    categories = [Category.from_dict(item) for item in raw]
    if any(not c.id.strip() for c in categories):
        return failure('validation_error', 400)

    try:
        upserted = run_async(get_repository().upsert_categories(categories))
        return success({'upserted': upserted}, 'categories_saved')
    except Exception as e:
        return data_error('POST /api/admin/categories', e, fallback={'upserted': 0}, write=True)


@admin_bp.route('/categories/<category_id>', methods=['DELETE'])
@require_admin_token
def admin_delete_category(category_id):
    try:
        deleted = run_async(get_repository().delete_category(category_id))
        return success({'ok': deleted}, 'category_deleted' if deleted else 'category_not_found')
    except Exception as e:
        return data_error('DELETE /api/admin/categories/{id}', e, fallback={'ok': False}, write=True)
