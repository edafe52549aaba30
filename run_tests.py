#!/usr/bin/env python3
"""Test runner for postbuild with coverage reporting."""

import sys
import subprocess
import os
from pathlib import Path


def run_pytest(label, args):
    print(f"\n🔍 {label}...")
    try:
        result = subprocess.run([sys.executable, "-m", "pytest", *args], check=False)
    except Exception as e:
        print(f"❌ Error running {label.lower()}: {e}")
        return False

    if result.returncode == 0:
        print(f"✅ {label} passed!")
        return True
    print(f"❌ {label} failed with return code {result.returncode}")
    return False


def install_requirements():
    """Install the package together with its test extra."""
    print("📦 Installing postbuild with test requirements...")
    try:
        subprocess.run([
            sys.executable, "-m", "pip", "install", "-e", ".[test]"
        ], check=True, capture_output=True)
    except subprocess.CalledProcessError as e:
        print(f"❌ Failed to install test requirements: {e}")
        return False
    print("✅ Test requirements installed successfully")
    return True


def main():
    """Main test runner."""
    os.chdir(Path(__file__).parent)

    print("🧪 Running Postbuild Test Suite")
    print("=" * 50)

    if '--no-install' not in sys.argv and not install_requirements():
        return 1

    success = run_pytest("Full suite with coverage", [
        "tests/",
        "-v",
        "--cov=postbuild_pkg",
        "--cov-report=html",
        "--cov-report=term-missing",
        "--cov-fail-under=80",
    ])

    # Cleanup runs deletions on a worker pool; repeat it to surface ordering flakes
    for attempt in range(1, 4):
        if not run_pytest(f"Cleanup concurrency run {attempt}", ["tests/test_cleanup.py", "-q", "--durations=5"]):
            success = False
            break

    print("\n" + "=" * 50)
    if success:
        print("🎉 All test suites completed successfully!")
        print("📈 Check htmlcov/index.html for detailed coverage report")
    else:
        print("💥 Some tests failed. Please review the output above.")

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
