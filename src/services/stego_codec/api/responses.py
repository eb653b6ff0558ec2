"""
API response models for the Stego Codec Service
"""

from pydantic import BaseModel
from typing import Any, Dict, Optional


class StegoAPIResult(BaseModel):
    """
    Standard API response model for all codec endpoints
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None
