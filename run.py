#!/usr/bin/env python3
"""Development server with hot reload. For production see gunicorn_conf.py."""
import os

import uvicorn


def run_server():
    """Run the FastAPI server with uvicorn"""
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))

    print("Starting Expense Tracker API...")
    print(f"Server will be available at: http://{host}:{port}")
    print("Press Ctrl+C to stop")

    uvicorn.run("expense_tracker.main:app", host=host, port=port, reload=True)


if __name__ == "__main__":
    run_server()
