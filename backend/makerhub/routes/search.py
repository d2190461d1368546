from flask import Blueprint, request

from makerhub.models.product import ProductQuery
from makerhub.routes.responses import (
    data_error,
    get_repository,
    parse_positive_int,
    run_async,
    success,
)

search_bp = Blueprint('search', __name__)


async def _search(repository, keyword: str, language, limit: int):
    products = await repository.list_products(ProductQuery(
        language=language,
        status='approved',
        search=keyword,
        limit=limit,
    ))
    developers = await repository.search_developers(keyword, limit)
    return products, developers


@search_bp.route('', methods=['GET'])
def search():
    """
    搜索产品和开发者

    Query Parameters:
    - q: 搜索关键词
    - language: 语言筛选
    - limit: 每类结果数量 (1-20)
    """
    keyword = (request.args.get('q') or '').strip()
    if not keyword:
        return success({'products': [], 'developers': []})

    limit = parse_positive_int(request.args.get('limit', 8), default=8, minimum=1, maximum=20)
    language = request.args.get('language')
    try:
        products, developers = run_async(_search(get_repository(), keyword, language, limit))
        return success({
            'products': [p.to_dict() for p in products],
            'developers': [d.to_dict() for d in developers],
        })
    except Exception as e:
        return data_error('GET /api/search', e, fallback={'products': [], 'developers': []})
