"""
Data Models Module

Pydantic models for the JSON bodies produced by the service.

Models are organized by functional area:
- Inspection models (frameability verdicts)
- Health check models
- Error models
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Inspection Models
# ============================================================================

class FrameabilityVerdict(BaseModel):
    """Result of inspecting a target's framing-related response headers."""
    frameable: bool = Field(..., description="Whether a browser would allow embedding the target in an iframe")
    xFrameOptions: Optional[str] = Field(None, description="X-Frame-Options value, if present")
    csp: Optional[str] = Field(None, description="Content-Security-Policy value, if present")
    customHeaders: Optional[Dict[str, bool]] = Field(
        None,
        description="Presence of each requested custom header (only when requested)",
    )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize, keeping null header values but omitting an unrequested customHeaders."""
        exclude = {"customHeaders"} if self.customHeaders is None else set()
        return self.model_dump(exclude=exclude)


# ============================================================================
# Health Check Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Error body returned by the inspection endpoints."""
    error: str = Field(..., description="Human-readable error message")
    frameable: Optional[bool] = Field(None, description="Always false when the target could not be inspected")
    customHeaders: Optional[Dict[str, bool]] = Field(None, description="Empty mapping on /check failures")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
