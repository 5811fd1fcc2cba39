"""
Flask application factory and server entry-point.
"""

import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from pharmachain.config import SECRET_KEY, SIMULATED_DELAY_SECONDS, TOKEN_EXPIRY_HOURS, get_env
from pharmachain.api.routes import register_routes


def create_app(delay: Optional[float] = None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    CORS(app)

    app.config["SIMULATED_DELAY"] = SIMULATED_DELAY_SECONDS if delay is None else delay
    print(f"[init] Simulated remote delay: {app.config['SIMULATED_DELAY']}s")

    register_routes(app)
    print("[init] ✓ API server ready")

    return app


def require_secret_key(debug: bool) -> str:
    """The built-in signing key is only accepted by the development server."""
    if debug:
        return SECRET_KEY
    return get_env("JWT_SECRET_KEY")


def main():
    """Run the development server."""
    print("=" * 60)
    print("PharmaChain – Supply-Chain REST API Server")
    print("=" * 60)

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"
    require_secret_key(debug)

    app = create_app()

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] CORS enabled: True")
    print(f"[server] Session expiry: {TOKEN_EXPIRY_HOURS} hours")
    print("\nAPI Endpoints:")
    print(f"  - POST http://{host}:{port}/api/auth/login")
    print(f"  - GET  http://{host}:{port}/api/screens")
    print(f"  - GET  http://{host}:{port}/api/inventory")
    print(f"  - GET  http://{host}:{port}/api/distributions")
    print(f"  - GET  http://{host}:{port}/api/reports/<dataset>/export")
    print(f"  - POST http://{host}:{port}/api/auth/logout")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
