"""Run the canvas API with uvicorn: ``python -m app``."""

import uvicorn

from flowcanvas.config import API_HOST, API_PORT

if __name__ == "__main__":
    uvicorn.run("app.main:app", host=API_HOST, port=API_PORT)
