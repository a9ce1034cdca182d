#!/usr/bin/env python3
"""
Main entry point for running the QuickCourt API and socket server
"""

from quickcourt.main import create_app
from config.config import Config
import os

if __name__ == '__main__':
    # Set environment
    os.environ.setdefault('FLASK_ENV', 'development')

    # Create and run app
    app = create_app()
    socketio = app.extensions['socketio']

    print("Starting QuickCourt API...")
    print(f"Access the API at: http://localhost:{Config.PORT}/api")
    print("\nPress CTRL+C to stop the server")

    socketio.run(
        app,
        host=Config.HOST,
        port=Config.PORT,
        debug=app.config.get('DEBUG', False),
        use_reloader=False,
        allow_unsafe_werkzeug=True
    )
    app.extensions['quickcourt'].close()
