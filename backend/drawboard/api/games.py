from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from drawboard.realtime import get_event_bus
from drawboard.services.games.catalog import GameCatalog
from drawboard.services.results import SqlAlchemyResultRepository, get_clock


games = Blueprint('games', __name__)


def _catalog() -> GameCatalog:
    return GameCatalog(SqlAlchemyResultRepository(), get_event_bus())


@games.route('', methods=['GET'])
def list_games():
    """Active games, split by whether today's game day already has a result."""
    repository = SqlAlchemyResultRepository()
    clock = get_clock()
    today = clock.today()
    start, end = clock.strict_window(today)

    results_by_game = {r.game_id: r for r in repository.list_results_for_day(today)}
    enhanced = []
    for game in repository.list_active_games(request.args.get('status')):
        payload = game.to_dict()
        result = results_by_game.get(game.id)
        payload['has_result'] = result is not None
        if result is not None:
            payload['result'] = result.value
            payload['result_published_at'] = result.to_dict()['published_at']
        enhanced.append(payload)

    current_app.logger.debug(f"[games] today={today} games={len(enhanced)} with_results={len(results_by_game)}")
    return jsonify({
        'games': enhanced,
        'upcoming_games': [g for g in enhanced if not g['has_result']],
        'games_with_results': [g for g in enhanced if g['has_result']],
        'today_game_day': today.isoformat(),
        'today_display': clock.format_date(start),
        'publish_window': {
            'start': start.isoformat(),
            'end': end.isoformat(),
        },
    })


@games.route('/<int:game_id>', methods=['GET'])
def get_game(game_id):
    return jsonify(_catalog().get(game_id).to_dict())


@games.route('', methods=['POST'])
@login_required
def create_game():
    game = _catalog().create(request.get_json(silent=True) or {}, user=current_user)
    return jsonify(game.to_dict()), 201


@games.route('/<int:game_id>', methods=['PUT'])
@login_required
def update_game(game_id):
    game = _catalog().update(game_id, request.get_json(silent=True) or {}, user=current_user)
    return jsonify(game.to_dict())


@games.route('/<int:game_id>', methods=['DELETE'])
@login_required
def delete_game(game_id):
    removed = _catalog().delete(game_id, user=current_user)
    return jsonify({
        'message': 'Game and associated results deleted successfully',
        'game_id': game_id,
        'deleted': True,
        'results_deleted': removed,
    })
