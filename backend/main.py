"""
Clearly Politics Backend — API server

    python main.py            # serve on CLEARLY_API_HOST:CLEARLY_API_PORT

Snapshots are produced separately by collect_data.py.
"""

import logging

import uvicorn

from config import API_HOST, API_PORT
from routes import app

logger = logging.getLogger("clearly")


def serve(host: str = API_HOST, port: int = API_PORT):
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    logger.info(f"Serving Clearly Politics API on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    serve()
