"""
SOFI Digital Banking - One-Click Setup Script
Checks dependencies, writes the reference data and runs the dashboard
"""

import importlib.util
import os
import sys
import subprocess

# import name -> package name on PyPI
REQUIRED_PACKAGES = {
    'pandas': 'pandas',
    'numpy': 'numpy',
    'streamlit': 'streamlit',
    'plotly': 'plotly',
    'werkzeug': 'werkzeug',
    'google.generativeai': 'google-generativeai',
}


def print_banner():
    print("=" * 70)
    print("🏦  SOFI DIGITAL BANKING - SETUP WIZARD")
    print("=" * 70)
    print()


def _is_installed(module_name):
    try:
        return importlib.util.find_spec(module_name) is not None
    except ModuleNotFoundError:
        return False


def check_dependencies():
    """Returns the PyPI names of any missing packages."""
    print("📦 Checking dependencies...")
    missing = []

    for module_name, package in REQUIRED_PACKAGES.items():
        if _is_installed(module_name):
            print(f"  ✅ {package}")
        else:
            print(f"  ❌ {package} - MISSING")
            missing.append(package)

    if missing:
        print(f"\n⚠️  Missing packages: {', '.join(missing)}")
        print("Install them with: pip install -e .")
    else:
        print("\n✅ All dependencies satisfied!")
    print()
    return missing


def setup_reference_files(path=None):
    """Writes the known-business table if it isn't there yet."""
    from reference_data import KNOWN_PAYEES_PATH, setup_reference_data

    path = path or KNOWN_PAYEES_PATH
    if os.path.exists(path):
        print(f"✅ Reference data found at {path}")
        return False

    print("📊 Writing known-business reference data...")
    setup_reference_data(path)
    print(f"✅ Reference data written to {path}")
    return True


def check_api_key():
    if os.environ.get('GEMINI_API_KEY') or os.environ.get('API_KEY'):
        print("✅ Gemini API key found. Smart Assistant enabled.")
    else:
        print("⚠️  No GEMINI_API_KEY / API_KEY set. Smart Assistant will run in disabled mode.")
    print()


def run_dashboard():
    """Launch the Streamlit dashboard"""
    print("=" * 70)
    print("🚀 LAUNCHING SOFI DASHBOARD")
    print("=" * 70)
    print()
    print("📌 Demo login: alex.j@example.com / password123")
    print("📌 Press Ctrl+C to stop the server")
    print()

    try:
        subprocess.run([sys.executable, "-m", "streamlit", "run", "dashboard.py"])
    except KeyboardInterrupt:
        print("\n👋 Dashboard stopped.")


def main():
    print_banner()

    if check_dependencies():
        print("❌ Setup stopped: install the missing packages first.")
        return 1

    setup_reference_files()
    check_api_key()
    run_dashboard()
    return 0


if __name__ == '__main__':
    try:
        sys.exit(main())
    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        print("\nPlease check:")
        print("  1. All Python files are in the same directory")
        print("  2. You have write permissions in this directory")
        print("  3. All dependencies are installed")
        sys.exit(1)
