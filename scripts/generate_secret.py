#!/usr/bin/env python3
"""
Generate the token signing secret.

Cart and login tokens are HS256 JWTs signed with SHOP_SECRET_KEY. This
script generates a fresh random secret and writes it to the .env file at
the project root, keeping any other settings already there.

Usage:
    python scripts/generate_secret.py
"""

import os
import secrets
import sys
from pathlib import Path

SECRET_VARIABLE = "SHOP_SECRET_KEY"


def generate_secret(num_bytes: int = 48) -> str:
    """Random URL-safe secret suitable for HS256 signing"""
    return secrets.token_urlsafe(num_bytes)


def write_secret(env_file: Path, secret: str) -> None:
    """Set SHOP_SECRET_KEY in the env file, replacing an existing value"""
    lines = env_file.read_text().splitlines() if env_file.exists() else []
    lines = [line for line in lines if not line.startswith(f"{SECRET_VARIABLE}=")]
    lines.append(f"{SECRET_VARIABLE}={secret}")

    env_file.write_text("\n".join(lines) + "\n")
    os.chmod(env_file, 0o600)  # Restrict permissions


def main():
    project_root = Path(__file__).parent.parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Bagel Shop Secret Generator")
    print("=" * 60)

    if env_file.exists() and f"{SECRET_VARIABLE}=" in env_file.read_text():
        response = input("\nA signing secret already exists. Overwrite? [y/N]: ")
        if response.lower() != "y":
            print("Aborted.")
            sys.exit(0)
        print("\nNote: carts and logins signed with the old secret will stop verifying.")

    write_secret(env_file, generate_secret())
    print(f"\n✓ Wrote {SECRET_VARIABLE} to {env_file}")
    print("=" * 60)


if __name__ == "__main__":
    main()
