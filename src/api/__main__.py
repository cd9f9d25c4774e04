"""Run the API server: ``python -m src.api``."""

import logging

import uvicorn

from src.config import settings

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    uvicorn.run("src.api.main:app", host=settings.api_host, port=settings.api_port)
