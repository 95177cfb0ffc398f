import json

from drawboard.realtime.events import GameDeleted


def _record(chunk):
    text = chunk.decode('utf-8') if isinstance(chunk, bytes) else chunk
    assert text.startswith('data: ') and text.endswith('\n\n')
    return json.loads(text[len('data: '):])


def test_stream_acknowledges_then_delivers(client, admin_client, game, bus, gateway):
    res = client.get('/api/events/subscribe')
    assert res.status_code == 200
    assert res.mimetype == 'text/event-stream'
    assert res.headers['Cache-Control'] == 'no-cache'
    frames = res.response

    hello = _record(next(frames))
    assert hello['kind'] == 'connected'
    assert gateway.get(hello['connectionId']) is not None
    assert gateway.connection_count == 1

    admin_client.post('/api/results', json={'game_id': game.id, 'value': '07'})
    assert _record(next(frames)) == {'kind': 'result-posted', 'gameId': game.id, 'value': '07'}

    bus.publish(GameDeleted(game_id=game.id))
    assert _record(next(frames)) == {'kind': 'game-deleted', 'gameId': game.id}

    res.close()
    assert gateway.connection_count == 0
    assert bus.subscriber_count == 0


def test_each_stream_is_released_on_close(client, gateway, bus):
    streams = [client.get('/api/events/subscribe') for _ in range(3)]
    assert gateway.connection_count == 3
    assert bus.subscriber_count == 3

    streams[0].close()
    assert gateway.connection_count == 2
    assert bus.subscriber_count == 2

    for res in streams[1:]:
        res.close()
    assert gateway.connection_count == 0
