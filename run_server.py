#!/usr/bin/env python3
"""
Start the Session Ledger API server.
"""
import argparse

if __name__ == "__main__":
    from session_ledger import config

    parser = argparse.ArgumentParser(description="Run the Session Ledger API server")
    parser.add_argument("--host", default=None, help="Bind address (default from config)")
    parser.add_argument("--port", type=int, default=None, help="Port (default from config)")
    args = parser.parse_args()

    import uvicorn
    from session_ledger.server import app

    host = args.host or config.server_host()
    port = args.port or config.server_port()

    print(f"🚀 Starting Session Ledger on {host}:{port}")
    print(f"🗄️  Database: {config.db_path()}")
    print(f"🔍 Health check: http://{host}:{port}/health")
    print()

    uvicorn.run(app, host=host, port=port)
