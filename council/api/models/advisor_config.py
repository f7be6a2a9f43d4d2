"""
Advisor persona configuration data models

Defines Pydantic models for the personas that sit on the council
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from ...brain_trust.types import Advisor


class Persona(BaseModel):
    """Advisor persona configuration"""
    id: str = Field(..., description="Persona unique identifier")
    name: str = Field(..., description="Persona display name")
    role: Optional[str] = Field(None, description="Short description of the persona's stance")
    avatar_emoji: Optional[str] = Field(None, description="Avatar shown next to replies")
    accent_color: Optional[str] = Field(None, description="UI accent color (hex)")
    model_id: str = Field(..., description="Model identifier on the OpenAI-compatible endpoint")
    system_prompt: str = Field(..., description="System prompt for the persona")
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0, description="Temperature override (None = service default)")
    is_default: bool = Field(default=False, description="Whether persona sits on the default council")
    enabled: bool = Field(default=True, description="Whether persona is enabled")

    def to_advisor(self) -> Advisor:
        """Convert to the orchestration-core advisor, keeping UI fields as extras"""
        extra = {
            key: value
            for key, value in {
                "role": self.role,
                "avatar_emoji": self.avatar_emoji,
                "accent_color": self.accent_color,
            }.items()
            if value is not None
        }
        return Advisor(
            id=self.id,
            name=self.name,
            system_prompt=self.system_prompt,
            model_id=self.model_id,
            extra=extra,
        )


class AdvisorsConfig(BaseModel):
    """Complete personas configuration"""
    personas: List[Persona]
