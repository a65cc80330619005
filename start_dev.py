#!/usr/bin/env python3
"""
Development script for starting the API with auto-reload
"""
import os

import uvicorn


def main():
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    print(f"🚀 Starting Rental Match Engine on http://{host}:{port}")
    uvicorn.run("rentmatch.main:app", host=host, port=port, reload=True)


if __name__ == "__main__":
    main()
