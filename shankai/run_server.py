#!/usr/bin/env python3
"""
Start the API server with uvicorn.

Usage:
    python -m shankai.run_server                    # 127.0.0.1:8000
    python -m shankai.run_server --host 0.0.0.0     # listen on all interfaces
    python -m shankai.run_server --port 5000 --reload
"""

import argparse
from pathlib import Path

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Start the shank.ai API server")
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="bind address (default: 127.0.0.1, use 0.0.0.0 for LAN access)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="port (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="auto-reload on code changes (development)",
    )

    args = parser.parse_args()
    current_dir = Path(__file__).parent

    print("=" * 60)
    print(f"host:   {args.host}")
    print(f"port:   {args.port}")
    print(f"reload: {'on' if args.reload else 'off'}")
    print("=" * 60)

    uvicorn.run(
        "shankai.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        reload_dirs=[str(current_dir)] if args.reload else None,
    )


if __name__ == "__main__":
    main()
