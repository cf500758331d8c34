#!/usr/bin/env python3
"""
Simple startup script for the SalesCoach API
"""
import os
import sys
import subprocess

def install_package():
    """Install the backend package and its dependencies"""
    print("Installing Python packages...")
    try:
        subprocess.run([sys.executable, "-m", "pip", "install", "-e", "."], check=True)
        print("Python packages installed successfully!")
        return True
    except subprocess.CalledProcessError as e:
        print(f"Failed to install packages: {e}")
        return False

def setup_database():
    """Initialize the database"""
    print("Setting up database...")
    try:
        subprocess.run([sys.executable, "init_db.py"], check=True, cwd="backend")
        print("Database initialized successfully!")
        return True
    except subprocess.CalledProcessError as e:
        print(f"Failed to setup database: {e}")
        return False

def start_backend():
    """Start the FastAPI backend"""
    print("Starting backend server...")
    port = os.getenv("PORT", "8000")
    process = subprocess.Popen([
        sys.executable, "-m", "uvicorn", "salescoach.main:app",
        "--reload", "--host", "0.0.0.0", "--port", port
    ], cwd="backend")
    print(f"Backend server started on http://localhost:{port}")
    print(f"API Docs: http://localhost:{port}/docs")
    return process

def main():
    print("SalesCoach Startup Script")
    print("=" * 40)

    if not os.path.exists("backend"):
        print("Please run this script from the project root directory")
        return

    if not install_package():
        return

    if not setup_database():
        return

    backend_process = start_backend()
    print("\nPress Ctrl+C to stop")

    try:
        backend_process.wait()
    except KeyboardInterrupt:
        print("\nShutting down...")
        backend_process.terminate()

if __name__ == "__main__":
    main()
