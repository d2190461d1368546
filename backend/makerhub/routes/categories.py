from flask import Blueprint, request

from makerhub.routes.responses import (
    data_error,
    get_repository,
    parse_positive_int,
    run_async,
    success,
)

categories_bp = Blueprint('categories', __name__)


@categories_bp.route('', methods=['GET'])
def get_categories():
    """获取所有分类"""
    try:
        categories = run_async(get_repository().list_categories())
        return success([c.to_dict() for c in categories])
    except Exception as e:
        return data_error('GET /api/categories', e, fallback=[])


@categories_bp.route('/top', methods=['GET'])
def get_top_categories():
    """按已上线产品数排序的分类"""
    limit = parse_positive_int(request.args.get('limit', 10), default=10, minimum=1, maximum=50)
    try:
        categories = run_async(get_repository().top_categories_by_product_count(limit))
        return success([c.to_dict() for c in categories])
    except Exception as e:
        return data_error('GET /api/categories/top', e, fallback=[])
