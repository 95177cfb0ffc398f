from drawboard import create_app, socketio

app = create_app()
 
if __name__ == '__main__':
    # SocketIO server serves both the /ws namespace and the SSE stream
    socketio.run(app, debug=True)
