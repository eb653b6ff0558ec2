"""
Main entry point for the Stego Codec Service

This file provides the router that the root FastAPI application includes.
"""

from .api.routes import router

__all__ = ["router"]
