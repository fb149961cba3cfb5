#!/usr/bin/env python
from backoffice import create_app
from backoffice.extensions import socketio

app = create_app()

if __name__ == '__main__':
    # Production serving goes through gunicorn; this is the local entry point
    socketio.run(app, debug=app.config['DEBUG'], allow_unsafe_werkzeug=app.config['DEBUG'])
