import math
from datetime import datetime

from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from drawboard.errors import AuthorizationError, ResultNotFoundError, ValidationError
from drawboard.main import caller_is_privileged
from drawboard.services.results import SqlAlchemyResultRepository, get_clock, get_publisher, publish_result


results = Blueprint('results', __name__)


def _first(data: dict, *keys):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _parse_instant(raw):
    if raw is None:
        return None
    try:
        return datetime.fromisoformat(str(raw).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError('Invalid date format') from None


def _parse_day(raw):
    if not raw:
        return None
    try:
        return get_clock().parse_day(raw)
    except ValueError as exc:
        raise ValidationError(str(exc)) from None


def _positive_int(raw, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _require_admin() -> None:
    if not caller_is_privileged():
        raise AuthorizationError()


@results.route('', methods=['POST'])
@login_required
def create_result():
    data = request.get_json(silent=True) or {}
    result = publish_result(
        get_publisher(),
        _first(data, 'game_id', 'gameId'),
        _first(data, 'value', 'publishedNumber'),
        caller_is_privileged(),
        as_of=_parse_instant(_first(data, 'as_of', 'asOf')),
        game_day=_first(data, 'game_day', 'gameDay'),
        published_by=current_user.id,
    )
    return jsonify(result.to_dict()), 201


@results.route('', methods=['GET'])
def list_results():
    """Public history, newest game day first.

    ``start_date``/``end_date`` filter on game days; ``published_on`` filters on
    the local calendar date the result was entered.
    """
    args = request.args
    clock = get_clock()
    page = _positive_int(args.get('page'), 1)
    limit = min(_positive_int(args.get('limit'), current_app.config.get('RESULTS_PAGE_SIZE', 10)), 100)
    published_on = _parse_day(args.get('published_on'))
    game_id = args.get('game_id', type=int)

    items, total = SqlAlchemyResultRepository().search_results(
        start_day=_parse_day(args.get('start_date')),
        end_day=_parse_day(args.get('end_date')),
        published_between=clock.simple_window(published_on) if published_on else None,
        game_id=game_id,
        page=page,
        limit=limit,
    )
    pages = math.ceil(total / limit) if total else 0
    return jsonify({
        'results': [r.to_dict() for r in items],
        'pagination': {
            'current_page': page,
            'total_pages': pages,
            'total_items': total,
            'items_per_page': limit,
            'has_next': page < pages,
            'has_prev': page > 1,
        },
    })


@results.route('/today', methods=['GET'])
def todays_results():
    clock = get_clock()
    today = clock.today()
    items = SqlAlchemyResultRepository().list_results_for_day(today)
    return jsonify({
        'game_day': today.isoformat(),
        'results': [r.to_dict() for r in items],
    })


@results.route('/<int:result_id>', methods=['GET'])
@login_required
def get_result(result_id):
    _require_admin()
    result = SqlAlchemyResultRepository().get_result(result_id)
    if result is None:
        raise ResultNotFoundError()
    return jsonify(result.to_dict())


@results.route('/<int:result_id>', methods=['PUT'])
@login_required
def amend_result(result_id):
    _require_admin()
    data = request.get_json(silent=True) or {}
    result = get_publisher().amend(result_id, _first(data, 'value', 'publishedNumber'))
    return jsonify(result.to_dict())


@results.route('/<int:result_id>', methods=['DELETE'])
@login_required
def retract_result(result_id):
    _require_admin()
    get_publisher().retract(result_id)
    return jsonify({'message': 'Result deleted successfully'})
