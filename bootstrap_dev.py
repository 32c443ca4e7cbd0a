#!/usr/bin/env python3
"""Bootstrap a sheet-jira-sync development environment."""

import os
import sys
import shutil
import subprocess
from pathlib import Path

VENV = Path("venv")
BIN = VENV / ("Scripts" if os.name == "nt" else "bin")


def run_step(args, description, required=True):
    """Run one bootstrap step; exit when a required step fails."""
    print(f"🔧 {description}...")
    result = subprocess.run([str(a) for a in args], capture_output=True, text=True)
    if result.returncode == 0:
        print(f"✅ {description} completed")
        return True

    print(f"❌ {description} failed (exit {result.returncode})")
    for stream in (result.stdout, result.stderr):
        if stream:
            print("   " + stream.strip().replace("\n", "\n   "))
    if required:
        sys.exit(1)
    return False


def seed_env_file():
    env_file = Path(".env")
    env_example = Path("config/.env.example")
    if env_file.exists():
        print("✅ .env file already exists")
    elif env_example.exists():
        shutil.copyfile(env_example, env_file)
        print("✅ .env created from config/.env.example")
    else:
        print("⚠️  config/.env.example not found, skipping .env")


def main():
    print("🚀 Setting up sheet-jira-sync development environment...")

    if sys.version_info < (3, 10):
        print("❌ Python 3.10+ is required")
        sys.exit(1)
    print(f"✅ Python {sys.version_info.major}.{sys.version_info.minor} detected")

    if VENV.exists():
        print("✅ Virtual environment already exists")
    else:
        run_step([sys.executable, "-m", "venv", VENV], "Creating virtual environment")

    python = BIN / "python"
    run_step([python, "-m", "pip", "install", "--upgrade", "pip"], "Upgrading pip")
    run_step([python, "-m", "pip", "install", "-e", ".[dev]"], "Installing sheet-jira-sync with dev extras")

    seed_env_file()
    Path("logs").mkdir(exist_ok=True)

    print("\n🧪 Running tests...")
    if not run_step([python, "-m", "pytest", "tests", "-q"], "Test suite", required=False):
        print("⚠️  Some tests failed, but setup can continue")

    print("\n📋 Next steps:")
    print("1. Point SHEETJIRA_WORKBOOK_PATH in .env at your .xlsx workbook")
    print(f"2. Start the server: {python} run_dev.py")
    print("3. Save the Jira connection: PUT /config/settings")
    print("4. Map sheet columns to ticket fields: PUT /config/mapping")
    print(f"5. Verify the credentials: {python} check_auth.py")


if __name__ == "__main__":
    main()
