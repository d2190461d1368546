from flask import Blueprint, request

from makerhub.models.product import CreateProductRequest, ProductQuery, UpdateProductRequest
from makerhub.routes.responses import (
    data_error,
    failure,
    get_repository,
    parse_positive_int,
    run_async,
    success,
)

products_bp = Blueprint('products', __name__)


def _optional_int(raw_value, minimum: int = 0):
    """Unset or unparseable -> None (no LIMIT/OFFSET)."""
    if raw_value is None:
        return None
    try:
        return max(minimum, int(raw_value))
    except (TypeError, ValueError):
        return None


def _user_id_from_body():
    body = request.get_json(silent=True) or {}
    user_id = str(body.get('user_id') or '').strip()
    return user_id or None


@products_bp.route('', methods=['GET'])
def list_products():
    """
    产品列表

    查询参数:
    - category / tags / language / status / search
    - limit / offset
    """
    query = ProductQuery(
        category=request.args.get('category'),
        tags=request.args.get('tags'),
        language=request.args.get('language'),
        status=request.args.get('status'),
        search=request.args.get('search'),
        limit=_optional_int(request.args.get('limit')),
        offset=_optional_int(request.args.get('offset')),
    )
    try:
        products = run_async(get_repository().list_products(query))
        return success([p.to_dict() for p in products])
    except Exception as e:
        return data_error('GET /api/products', e, fallback=[])


@products_bp.route('', methods=['POST'])
def create_product():
    """提交产品，状态始终为待审核"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return failure('validation_error', 400)

    payload = CreateProductRequest.from_dict(data)
    if not payload.name.strip() or not payload.maker_email.strip():
        return failure('validation_error', 400)

    try:
        product = run_async(get_repository().create_product(payload))
        return success(product.to_dict(), 'product_created', status=201)
    except Exception as e:
        return data_error('POST /api/products', e, write=True)


@products_bp.route('/favorites', methods=['GET'])
def list_favorite_products():
    """用户收藏的产品"""
    user_id = (request.args.get('user_id') or '').strip()
    if not user_id:
        return failure('validation_error', 400, data=[])

    limit = parse_positive_int(request.args.get('limit', 50), default=50, minimum=1, maximum=200)
    language = request.args.get('language')
    try:
        products = run_async(get_repository().list_favorite_products(user_id, language, limit))
        return success([p.to_dict() for p in products])
    except Exception as e:
        return data_error('GET /api/products/favorites', e, fallback=[])


@products_bp.route('/<product_id>', methods=['GET'])
def get_product_detail(product_id):
    """获取产品详情"""
    try:
        product = run_async(get_repository().get_product(product_id))
    except Exception as e:
        return data_error('GET /api/products/{id}', e)
    if product is None:
        return failure('product_not_found', 404)
    return success(product.to_dict())


@products_bp.route('/<product_id>', methods=['PUT'])
def update_product(product_id):
    """部分更新产品 (任意字段子集，包括状态)"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return failure('validation_error', 400)

    updates = UpdateProductRequest.from_dict(data)
    try:
        product = run_async(get_repository().update_product(product_id, updates))
    except Exception as e:
        return data_error('PUT /api/products/{id}', e, write=True)
    if product is None:
        return failure('product_not_found', 404)
    return success(product.to_dict(), 'product_updated')


@products_bp.route('/<product_id>', methods=['DELETE'])
def delete_product(product_id):
    try:
        deleted = run_async(get_repository().delete_product(product_id))
    except Exception as e:
        return data_error('DELETE /api/products/{id}', e, write=True)
    if not deleted:
        return failure('product_not_found', 404)
    return success({'id': product_id}, 'product_deleted')


def _engagement(product_id: str, action: str):
    user_id = _user_id_from_body()
    if not user_id:
        return failure('unauthorized', 401)

    repository = get_repository()
    operation = {
        'like': repository.like_product,
        'unlike': repository.unlike_product,
        'favorite': repository.favorite_product,
        'unfavorite': repository.unfavorite_product,
    }[action]
    try:
        run_async(operation(product_id, user_id))
        return success({'ok': True})
    except Exception as e:
        return data_error(f'POST /api/products/{{id}}/{action}', e, fallback={'ok': False}, write=True)


@products_bp.route('/<product_id>/like', methods=['POST'])
def like_product(product_id):
    return _engagement(product_id, 'like')


@products_bp.route('/<product_id>/unlike', methods=['POST'])
def unlike_product(product_id):
    return _engagement(product_id, 'unlike')


@products_bp.route('/<product_id>/favorite', methods=['POST'])
def favorite_product(product_id):
    return _engagement(product_id, 'favorite')


@products_bp.route('/<product_id>/unfavorite', methods=['POST'])
def unfavorite_product(product_id):
    return _engagement(product_id, 'unfavorite')
