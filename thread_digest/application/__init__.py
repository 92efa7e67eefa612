"""Application layer: FastAPI app factory and HTTP API."""
