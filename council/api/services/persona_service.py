"""
Advisor persona configuration service

Loads the council's advisor personas from layered YAML configuration
"""
import logging
from pathlib import Path
from typing import List, Optional

import aiofiles
import yaml

from ..models.advisor_config import AdvisorsConfig, Persona
from ..paths import (
    config_defaults_dir,
    config_local_dir,
    ensure_local_file,
    resolve_layered_read_path,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "advisors_config.yaml"


class PersonaService:
    """Advisor persona configuration service"""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize persona configuration service

        Args:
            config_path: Configuration file path, defaults to config/local/advisors_config.yaml
                bootstrapped from config/defaults/
        """
        self.defaults_path: Optional[Path] = None

        if config_path is None:
            self.defaults_path = config_defaults_dir() / CONFIG_FILENAME
            self.config_path = config_local_dir() / CONFIG_FILENAME
        else:
            self.config_path = Path(config_path)
        self._ensure_config_exists()

    def _ensure_config_exists(self):
        """Ensure configuration file exists, create default if not"""
        initial_text = yaml.safe_dump(self._get_default_config(), allow_unicode=True, sort_keys=False)
        ensure_local_file(
            local_path=self.config_path,
            defaults_path=self.defaults_path,
            initial_text=initial_text,
        )

    def _get_default_config(self) -> dict:
        """Get default configuration"""
        return {
            "personas": [
                {
                    "id": "sage",
                    "name": "The Sage",
                    "role": "Balanced Wisdom",
                    "avatar_emoji": "🦉",
                    "accent_color": "#7d9a78",
                    "model_id": "gpt-4o",
                    "is_default": True,
                    "system_prompt": (
                        "You are The Sage, an advisor known for balanced, thoughtful counsel. "
                        "Acknowledge complexity and tradeoffs, provide actionable guidance, "
                        "and say so clearly when you are uncertain."
                    ),
                },
                {
                    "id": "skeptic",
                    "name": "The Skeptic",
                    "role": "Devil's Advocate",
                    "avatar_emoji": "🦊",
                    "accent_color": "#8b6b8b",
                    "model_id": "gpt-4o",
                    "is_default": True,
                    "system_prompt": (
                        "You are The Skeptic, an advisor who stress-tests ideas and assumptions. "
                        "Always give substantive critical analysis, name the assumption you are "
                        "challenging and describe concrete failure modes."
                    ),
                },
                {
                    "id": "strategist",
                    "name": "The Strategist",
                    "role": "Analytical Framework",
                    "avatar_emoji": "🦅",
                    "accent_color": "#6b7b8b",
                    "model_id": "gpt-4o-mini",
                    "is_default": True,
                    "system_prompt": (
                        "You are The Strategist, an advisor who brings structure and frameworks "
                        "to complex decisions. Break problems into components, identify key "
                        "variables and focus on actionable next steps."
                    ),
                },
            ]
        }

    async def load_config(self) -> AdvisorsConfig:
        """Load configuration file"""
        config_path = resolve_layered_read_path(
            local_path=self.config_path,
            defaults_path=self.defaults_path,
        )

        async with aiofiles.open(config_path, 'r', encoding='utf-8') as f:
            content = await f.read()
            data = yaml.safe_load(content) or {"personas": []}
            return AdvisorsConfig(**data)

    async def get_personas(self) -> List[Persona]:
        """Get all enabled personas in configured order"""
        config = await self.load_config()
        return [persona for persona in config.personas if persona.enabled]

    async def get_default_personas(self) -> List[Persona]:
        """Get the personas that sit on the default council"""
        return [persona for persona in await self.get_personas() if persona.is_default]

    async def get_persona(self, persona_id: str) -> Optional[Persona]:
        """Get a persona by ID, None when unknown or disabled"""
        for persona in await self.get_personas():
            if persona.id == persona_id:
                return persona
        logger.debug("Persona not found: %s", persona_id)
        return None
