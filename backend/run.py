#!/usr/bin/env python3
# backend/run.py
"""
Development server runner for the vendor search API.
For local development only; honours HOST, PORT and RELOAD from the environment.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("ENVIRONMENT", "development")

import uvicorn

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    print(f"🚀 Starting vendor search API ({os.environ['ENVIRONMENT']})...")
    print(f"🌐 Access at: http://localhost:{port}")
    print(f"📚 API Docs: http://localhost:{port}/docs")

    uvicorn.run(
        "vendor_search.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "true").lower() == "true",
        log_level="info",
    )
