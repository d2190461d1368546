from flask import Blueprint, request

from makerhub.models.developer import DeveloperCenterStats
from makerhub.routes.responses import (
    data_error,
    failure,
    get_repository,
    parse_positive_int,
    run_async,
    success,
)

developers_bp = Blueprint('developers', __name__)


def _limit_arg() -> int:
    return parse_positive_int(request.args.get('limit', 10), default=10, minimum=1, maximum=50)


def _normalize_email(email: str) -> str:
    return (email or '').strip().lower()


@developers_bp.route('/top', methods=['GET'])
def get_top_developers():
    """按关注数排序的开发者"""
    try:
        developers = run_async(get_repository().top_developers_by_followers(_limit_arg()))
        return success([d.to_dict() for d in developers])
    except Exception as e:
        return data_error('GET /api/developers/top', e, fallback=[])


@developers_bp.route('/recent', methods=['GET'])
def get_recent_developers():
    """最近加入的开发者"""
    try:
        developers = run_async(get_repository().recent_developers(_limit_arg()))
        return success([d.to_dict() for d in developers])
    except Exception as e:
        return data_error('GET /api/developers/recent', e, fallback=[])


@developers_bp.route('/popularity-last-month', methods=['GET'])
def get_developer_popularity_last_month():
    """上个自然月的人气榜 (点赞数 + 收藏数)"""
    try:
        ranking = run_async(get_repository().developer_popularity_last_month(_limit_arg()))
        return success([d.to_dict() for d in ranking])
    except Exception as e:
        return data_error('GET /api/developers/popularity-last-month', e, fallback=[])


@developers_bp.route('/popularity-last-week', methods=['GET'])
def get_developer_popularity_last_week():
    """最近 7 天的人气榜"""
    try:
        ranking = run_async(get_repository().developer_popularity_last_week(_limit_arg()))
        return success([d.to_dict() for d in ranking])
    except Exception as e:
        return data_error('GET /api/developers/popularity-last-week', e, fallback=[])


@developers_bp.route('/<email>', methods=['GET'])
def get_developer(email):
    try:
        developer = run_async(get_repository().get_developer(_normalize_email(email)))
    except Exception as e:
        return data_error('GET /api/developers/{email}', e)
    if developer is None:
        return failure('developer_not_found', 404)
    return success(developer.to_dict())


@developers_bp.route('/<email>/center-stats', methods=['GET'])
def get_developer_center_stats(email):
    """开发者中心统计"""
    try:
        stats = run_async(get_repository().developer_center_stats(_normalize_email(email)))
        return success(stats.to_dict())
    except Exception as e:
        return data_error(
            'GET /api/developers/{email}/center-stats', e,
            fallback=DeveloperCenterStats().to_dict(),
        )


def _follow_action(email: str, action: str):
    body = request.get_json(silent=True) or {}
    user_id = str(body.get('user_id') or '').strip()
    if not user_id:
        return failure('unauthorized', 401)

    repository = get_repository()
    operation = repository.follow_developer if action == 'follow' else repository.unfollow_developer
    try:
        run_async(operation(_normalize_email(email), user_id))
        return success({'ok': True})
    except Exception as e:
        return data_error(f'POST /api/developers/{{email}}/{action}', e, fallback={'ok': False}, write=True)


@developers_bp.route('/<email>/follow', methods=['POST'])
def follow_developer(email):
    return _follow_action(email, 'follow')


@developers_bp.route('/<email>/unfollow', methods=['POST'])
def unfollow_developer(email):
    return _follow_action(email, 'unfollow')
