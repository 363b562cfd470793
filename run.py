#!/usr/bin/env python3
"""
Startup script for the Daycare Waitlist Service
"""
import argparse
import asyncio
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import httpx
import uvicorn

from src.waitlist.config import settings

REQUIRED_PACKAGES = ["fastapi", "uvicorn", "pydantic", "pydantic-settings", "asyncpg", "loguru"]


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Daycare Waitlist Service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py                     # Run in production mode
  python run.py --dev               # Run in development mode
  python run.py --port 8003         # Run on different port
  python run.py --check             # Check configuration
  python run.py --ping              # Query /health of a running service
        """
    )

    parser.add_argument(
        '--dev', '--development',
        action='store_true',
        help='Run in development mode with auto-reload'
    )

    parser.add_argument(
        '--host',
        default=settings.host,
        help=f'Host to bind to (default: {settings.host})'
    )

    parser.add_argument(
        '--port', '-p',
        type=int,
        default=settings.port,
        help=f'Port to listen on (default: {settings.port})'
    )

    parser.add_argument(
        '--workers', '-w',
        type=int,
        default=1 if settings.debug else 4,
        help='Number of worker processes'
    )

    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warning', 'error'],
        default='debug' if settings.debug else 'info',
        help='Log level'
    )

    parser.add_argument(
        '--check', '-c',
        action='store_true',
        help='Check configuration and dependencies'
    )

    parser.add_argument(
        '--ping',
        action='store_true',
        help='Query the health endpoint of a running service'
    )

    return parser.parse_args()


def check_dependencies():
    """Check if all required dependencies are installed"""
    print("Checking dependencies...")

    missing_deps = []
    for package in REQUIRED_PACKAGES:
        try:
            print(f"✓ {package} {version(package)}")
        except PackageNotFoundError:
            missing_deps.append(package)

    if missing_deps:
        print(f"\n❌ Missing dependencies: {', '.join(missing_deps)}")
        print("Install with: pip install -e .")
        return False

    print("\n✅ All dependencies satisfied")
    return True


def check_configuration():
    """Check configuration settings"""
    print("\nConfiguration check:")
    print(f"  App name: {settings.app_name}")
    print(f"  Version: {settings.app_version}")
    print(f"  Debug mode: {settings.debug}")
    print(f"  Host: {settings.host}")
    print(f"  Port: {settings.port}")
    print(f"  Database backend: {settings.database_backend.value}")
    print(f"  Isolation: {settings.transaction_isolation}")
    print(f"  Default waitlist policy: {settings.default_waitlist_policy}")
    print(f"  Reverse placement on de-accept: {settings.reverse_placement_on_deaccept}")

    if settings.database_backend.value == "postgres" and not settings.database_url:
        print("  ❌ DATABASE_URL is not set")
        return False

    return True


async def ping(host: str, port: int) -> bool:
    """Query /health of a running service"""
    url = f"http://{host}:{port}/health"
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(url, timeout=5)
        except httpx.HTTPError as e:
            print(f"! API not running or not accessible: {e}")
            print("  Start the service first with: python run.py")
            return False

    if response.status_code != 200:
        print(f"❌ API health check failed: {response.status_code}")
        return False

    health = response.json()
    print(f"✅ {health['service']} {health['version']}: {health['status']}")
    print(f"   Database: {health['database']['backend']} ({health['database']['status']})")
    return health["status"] == "healthy"


def main():
    """Main entry point"""
    args = parse_args()

    if args.check:
        success = check_dependencies() and check_configuration()
        sys.exit(0 if success else 1)

    if args.ping:
        host = "localhost" if args.host == "0.0.0.0" else args.host
        success = asyncio.run(ping(host, args.port))
        sys.exit(0 if success else 1)

    if not check_dependencies() or not check_configuration():
        sys.exit(1)

    is_dev = args.dev or settings.debug

    print(f"\n🚀 Starting {settings.app_name}")
    print(f"   Mode: {'Development' if is_dev else 'Production'}")
    print(f"   URL: http://{args.host}:{args.port}")
    if is_dev:
        print(f"   Docs: http://{args.host}:{args.port}/docs")
    print(f"   Workers: {args.workers}")
    print()

    try:
        uvicorn.run(
            "src.waitlist.main:app",
            host=args.host,
            port=args.port,
            reload=is_dev,
            workers=1 if is_dev else args.workers,
            log_level=args.log_level,
            access_log=True,
            server_header=False,
            date_header=False
        )
    except KeyboardInterrupt:
        print("\n👋 Service stopped")


if __name__ == "__main__":
    main()
