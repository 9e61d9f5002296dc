"""
HTTP layer (Flask).

Usage:
    from sentimentiq.web import create_app

    app = create_app()
    app.run(port=3001)
"""

from sentimentiq.web.app import create_app
from sentimentiq.web.identity import Identity, resolve_identity

__all__ = ["create_app", "Identity", "resolve_identity"]
