"""
SentimentIQ Pro - HTTP server entry point

Example usage:
    python main.py
    python main.py --config config/config.yaml --port 3001
"""

import argparse
from pathlib import Path

from sentimentiq.utils.config import load_config
from sentimentiq.utils.logging import get_logger, setup_logging_from_config
from sentimentiq.web import create_app


def main():
    """Main entry point for the API server."""
    parser = argparse.ArgumentParser(description="Run the SentimentIQ Pro API server")
    parser.add_argument("--config", type=Path, default=None, help="Path to configuration file")
    parser.add_argument("--host", default=None, help="Bind address")
    parser.add_argument("--port", type=int, default=None, help="Port")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    args = parser.parse_args()

    config = load_config(str(args.config) if args.config else None)
    setup_logging_from_config(config, verbose=args.verbose)
    logger = get_logger("main")

    server = config.get("server", {})
    host = args.host or server.get("host", "127.0.0.1")
    port = args.port or server.get("port", 3001)

    app = create_app(config)
    logger.info(f"SentimentIQ Pro server starting on http://{host}:{port}")
    if not app.orchestrator.provider.is_configured:
        logger.warning("Running without a configured analysis provider")

    try:
        app.run(host=host, port=port)
    finally:
        app.orchestrator.shutdown()


if __name__ == "__main__":
    main()
