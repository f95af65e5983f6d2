"""
Generation Interfaces Layer
===========================

Interface adapters (controllers) for the generation module.

Contains:
- Controllers: FastAPI route handlers
"""

from src.generation.interfaces.controllers import generation_router, get_message_service

__all__ = ["generation_router", "get_message_service"]
