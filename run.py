"""
Development server entry point.

Run this script to start the Flask development server with WebSocket support.
"""

import argparse
from src.rolecall.app import create_app

if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Run the Rolecall game server")
    parser.add_argument('--host', default='0.0.0.0')
    parser.add_argument('--port', type=int, default=5000)
    parser.add_argument('--rounds', help="Path to a round catalogue JSON file")
    args = parser.parse_args()

    config = {'ROUNDS_FILE': args.rounds} if args.rounds else None
    app, socketio = create_app(config)
    socketio.run(app, debug=True, host=args.host, port=args.port)
