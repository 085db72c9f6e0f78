"""HTTP boundary: FastAPI app, routes and request/response models."""
