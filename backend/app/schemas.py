"""
Pydantic schemas for response validation.
"""

from pydantic import BaseModel, Field


class TopUserResponse(BaseModel):
    user_id: str
    name: str
    post_count: int = Field(ge=0)


class MemoryUsage(BaseModel):
    max_rss_bytes: int


class HealthResponse(BaseModel):
    status: str
    server_time: str
    redis_status: str
    memory_usage: MemoryUsage
    uptime: float


class ErrorResponse(BaseModel):
    error: str
    message: str
