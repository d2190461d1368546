"""
Shared helpers for the API blueprints: envelope, messages, degraded replies.
"""

import logging
import uuid

from flask import current_app, jsonify, request

from makerhub.services.degradation import is_backend_unavailable

logger = logging.getLogger(__name__)

MESSAGES = {
    'en': {
        'ok': 'OK',
        'product_created': 'Product submitted successfully, pending review',
        'product_updated': 'Product updated successfully',
        'product_deleted': 'Product deleted successfully',
        'product_not_found': 'Product not found',
        'developer_not_found': 'Developer not found',
        'category_not_found': 'Category not found',
        'categories_saved': 'Categories saved',
        'category_deleted': 'Category deleted',
        'validation_error': 'Please check your input',
        'unauthorized': 'Unauthorized',
        'server_error': 'An error occurred on the server',
        'degraded': 'Database is unavailable. Results are empty in degraded mode.',
        'degraded_write': 'Database is unavailable. The write was skipped in degraded mode.',
    },
    'zh': {
        'ok': '成功',
        'product_created': '产品提交成功，等待审核',
        'product_updated': '产品更新成功',
        'product_deleted': '产品删除成功',
        'product_not_found': '未找到产品',
        'developer_not_found': '未找到开发者',
        'category_not_found': '未找到分类',
        'categories_saved': '分类已保存',
        'category_deleted': '分类已删除',
        'validation_error': '请检查你的输入',
        'unauthorized': '未授权',
        'server_error': '服务器发生错误',
        'degraded': '数据库暂不可用，降级模式下返回空结果。',
        'degraded_write': '数据库暂不可用，降级模式下跳过写入。',
    },
}

# Cap on backend error text echoed to clients when diagnostics are on.
MAX_DETAIL_LENGTH = 800


def request_language() -> str:
    header = request.headers.get('Accept-Language', 'en') or 'en'
    return 'zh' if header.strip().lower().startswith('zh') else 'en'


def message(key: str) -> str:
    return MESSAGES[request_language()].get(key, key)


def get_repository():
    return current_app.extensions['makerhub']['repository']


def run_async(coro):
    """Run a repository coroutine on the app's event loop thread."""
    runner = current_app.extensions['makerhub']['runner']
    return runner.run(coro, timeout=current_app.config.get('REQUEST_TIMEOUT_SECONDS'))


def parse_positive_int(raw_value, default: int, minimum: int, maximum: int) -> int:
    """Parse int query params with guard rails."""
    try:
        parsed = int(raw_value)
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, parsed))


def success(data, message_key: str = 'ok', status: int = 200):
    return jsonify({
        'success': True,
        'data': data,
        'message': message(message_key),
    }), status


def failure(message_key: str, status: int, data=None):
    return jsonify({
        'success': False,
        'data': data,
        'message': message(message_key),
    }), status


def data_error(endpoint: str, err: Exception, fallback=None, write: bool = False):
    """Degraded 200 for unavailable backends, 500 for everything else."""
    if not is_backend_unavailable(err):
        logger.exception("request failed endpoint=%s", endpoint)
        return jsonify({
            'success': False,
            'data': fallback,
            'message': str(err) or message('server_error'),
        }), 500

    trace_id = str(uuid.uuid4())
    logger.warning("db degraded endpoint=%s trace_id=%s err=%r", endpoint, trace_id, err)
    error = {
        'code': 'DB_DEGRADED',
        'trace_id': trace_id,
        'degraded': True,
        'hint': '查看后端日志并按 trace_id 定位具体数据库错误。',
    }
    if current_app.config.get('API_DIAGNOSTICS'):
        error['detail'] = str(err)[:MAX_DETAIL_LENGTH]
    return jsonify({
        'success': True,
        'data': fallback,
        'message': message('degraded_write' if write else 'degraded'),
        'error': error,
    }), 200
