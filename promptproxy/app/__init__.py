"""FastAPI application for the prompt optimizer gateway."""
