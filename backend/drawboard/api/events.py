from flask import Blueprint, Response, current_app

from drawboard.realtime import QueueSink, get_gateway


events = Blueprint('events', __name__)


@events.route('/subscribe', methods=['GET'])
def subscribe():
    """Server-Sent Events stream of result and game changes.

    The first frame is the ``connected`` acknowledgement; heartbeats are SSE
    comment lines. Closing the response (client gone, server shutdown)
    tears the connection down.
    """
    gateway = get_gateway()
    sink = QueueSink(maxsize=current_app.config.get('STREAM_QUEUE_SIZE', 100))
    conn = gateway.open(sink)

    response = Response(
        sink.frames(),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
        },
    )
    response.call_on_close(lambda: gateway.close(conn))
    return response
