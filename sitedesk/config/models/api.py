"""HTTP server settings."""

from pydantic import BaseModel, Field


class APIConfig(BaseModel):
    """Where the events API listens and which browser origins may call it."""

    host: str = Field(default="0.0.0.0", description="Interface uvicorn binds to")
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], description="Origins sent to CORSMiddleware")
    cors_allow_credentials: bool = False
