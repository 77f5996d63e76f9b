"""
Pydantic schemas for admin operations.
"""

from pydantic import BaseModel, Field
from typing import List
import uuid


class BulkDeleteRequest(BaseModel):
    ids: List[uuid.UUID] = Field(..., min_length=1, max_length=500)
