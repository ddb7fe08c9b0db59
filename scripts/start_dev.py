#!/usr/bin/env python3
"""
Development startup script.

Runs pre-flight checks and starts the Bagel Shop API with auto-reload.
"""

import os
import shutil
import subprocess
import sys
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi  # noqa: F401
        import uvicorn  # noqa: F401
        import pydantic_settings  # noqa: F401
        import cryptography  # noqa: F401
        import jwt  # noqa: F401
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Check if .env exists, copying the example if needed."""
    env_file = PROJECT_ROOT / ".env"
    env_example = PROJECT_ROOT / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
        return True
    elif env_example.exists():
        print("! Configuration file not found, copying from example...")
        shutil.copy(env_example, env_file)
        print("✓ Created .env from example")
        return True
    else:
        print("✗ No configuration file found")
        return False


def check_secret():
    """Check that a signing secret has been generated."""
    env_file = PROJECT_ROOT / ".env"
    if env_file.exists() and "SHOP_SECRET_KEY=" in env_file.read_text():
        print("✓ Signing secret found")
        return True
    print("✗ Signing secret not found")
    return False


def start_server():
    """Start the API in development mode."""
    port = os.getenv("SHOP_PORT", "8001")
    print(f"\n🥯 Starting Bagel Shop API on http://localhost:{port} ...")
    print(f"📍 API docs: http://localhost:{port}/docs")
    print("\nPress Ctrl+C to stop")

    process = subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn",
            "bagelshop.main:app",
            "--reload",
            "--host", "0.0.0.0",
            "--port", port,
        ],
        cwd=PROJECT_ROOT,
    )
    try:
        process.wait()
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        process.terminate()
        process.wait()
        print("Server stopped.")


def main():
    print("=" * 60)
    print("Bagel Shop API - Development Server")
    print("=" * 60)

    # Pre-flight checks
    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    if not check_env():
        sys.exit(1)

    if not check_secret():
        response = input("\nGenerate a signing secret now? [Y/n]: ")
        if response.lower() != "n":
            subprocess.run([sys.executable, str(PROJECT_ROOT / "scripts" / "generate_secret.py")])
        else:
            print("Continuing with the development secret.")

    print("\n✓ All checks passed!")

    start_server()


if __name__ == "__main__":
    main()
