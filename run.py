#!/usr/bin/env python3
"""
Trust Ledger Entry Point

Starts the FastAPI server with the configured host, port and database.
"""

import sys

from trust_ledger.api import run_server
from trust_ledger.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Trust Ledger...")
    print(f"Database: {config.database_path}")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server()
    except KeyboardInterrupt:
        print("\nShutting down Trust Ledger...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
