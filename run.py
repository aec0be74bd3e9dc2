#!/usr/bin/env python3
"""
Production application runner for the PDF Flashcard Generator
"""
import os
import sys
import json
import argparse
import logging
from pathlib import Path

import requests

from config import settings


def setup_production_logging():
    """Setup production-grade logging"""
    from utils.logging import setup_logging

    logs_dir = Path("logs")
    logs_dir.mkdir(exist_ok=True)

    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(logs_dir / "app.log")
    )


def run_server():
    """Run the application server"""
    import uvicorn

    setup_production_logging()

    logger = logging.getLogger(__name__)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Host: {settings.host}:{settings.port}")
    logger.info(f"Workers: {settings.workers}")

    uvicorn_config = {
        "app": "main:app",
        "host": settings.host,
        "port": settings.port,
        "workers": settings.workers,
        "log_level": settings.log_level.lower(),
        "access_log": True,
        "server_header": False,
        "proxy_headers": True,
        "forwarded_allow_ips": "*"
    }

    ssl_keyfile = os.getenv("SSL_KEYFILE")
    ssl_certfile = os.getenv("SSL_CERTFILE")

    if ssl_keyfile and ssl_certfile:
        uvicorn_config.update({
            "ssl_keyfile": ssl_keyfile,
            "ssl_certfile": ssl_certfile
        })
        logger.info("SSL/TLS enabled")

    uvicorn.run(**uvicorn_config)


def run_health_check(base_url: str = None) -> bool:
    """Run a health check against the running service"""
    base_url = base_url or f"http://{settings.host}:{settings.port}"

    try:
        response = requests.get(f"{base_url}/health", timeout=10)
        print(f"Health Check Status: {response.status_code}")
        print(json.dumps(response.json(), indent=2))

        response = requests.get(f"{base_url}/health/detailed", timeout=30)
        print(f"\nDetailed Health Check Status: {response.status_code}")
        print(json.dumps(response.json(), indent=2))

        return response.status_code == 200

    except requests.exceptions.RequestException as e:
        print(f"Health check failed: {e}")
        return False


def run_cleanup(max_age_seconds: float) -> bool:
    """Remove uploads left behind by interrupted requests"""
    from services.flashcard_service import FlashcardService

    logger = logging.getLogger(__name__)
    logger.info(f"Removing uploads older than {max_age_seconds}s from {settings.upload_directory}")

    try:
        service = FlashcardService(upload_directory=settings.upload_directory)
        removed = service.cleanup_stale_uploads(max_age_seconds=max_age_seconds)
    except OSError as e:
        logger.error(f"Cleanup failed: {e}")
        return False

    logger.info(f"Cleanup completed, {removed} files removed")
    return True


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="PDF Flashcard Generator Runner")
    parser.add_argument(
        "command",
        choices=["server", "health", "cleanup"],
        help="Command to run"
    )
    parser.add_argument(
        "--url",
        help="Base URL of the running service (health command)"
    )
    parser.add_argument(
        "--max-age",
        type=float,
        default=3600,
        help="Minimum age in seconds of uploads to remove (cleanup command)"
    )

    args = parser.parse_args()

    if args.command == "server":
        run_server()
    elif args.command == "health":
        success = run_health_check(args.url)
        sys.exit(0 if success else 1)
    elif args.command == "cleanup":
        success = run_cleanup(args.max_age)
        sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
