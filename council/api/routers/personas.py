"""
Advisor persona API endpoints

Read access to the personas that can sit on the council
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from typing import List

from ..models.advisor_config import Persona
from ..services.persona_service import PersonaService
from .chat import get_persona_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/personas", tags=["personas"])


@router.get("", response_model=List[Persona])
async def list_personas(
    default_only: bool = False,
    service: PersonaService = Depends(get_persona_service),
):
    """Get all enabled personas, or only the default council when default_only is set"""
    try:
        if default_only:
            return await service.get_default_personas()
        return await service.get_personas()
    except Exception as e:
        logger.error(f"Failed to load personas: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{persona_id}", response_model=Persona)
async def get_persona(
    persona_id: str,
    service: PersonaService = Depends(get_persona_service),
):
    """
    Get specified persona details

    Args:
        persona_id: Persona ID
    """
    persona = await service.get_persona(persona_id)
    if not persona:
        raise HTTPException(status_code=404, detail=f"Persona '{persona_id}' not found")
    return persona
