#!/usr/bin/env python3
"""
Prompt Enhancement Service
Main entry point for the application
"""

from prompt_enhancer.main import app
from prompt_enhancer.config import settings
import uvicorn

if __name__ == "__main__":
    print("Starting Prompt Enhancement Service...")
    print(f"Server will run on http://{settings.HOST}:{settings.PORT}")
    print(f"API Documentation available at http://{settings.HOST}:{settings.PORT}/docs")

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
