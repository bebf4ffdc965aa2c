"""Jinja2-based system prompt repository."""

import logging

from kotonoha.config import PersonaConfig
from kotonoha.domain.entities import ChatRequest, ChatResponse, Kotonoha
from kotonoha.infrastructure.llm.templates import create_jinja_env

logger = logging.getLogger(__name__)

_FULL_NAMES = {
    Kotonoha.AKANE: "琴葉 茜",
    Kotonoha.AOI: "琴葉 葵",
}


class JinjaPromptRepository:
    """PromptRepository implementation rendering Jinja2 templates.

    The system message describes the character of one sister and the JSON
    schemas of the input and output payloads. Additional behaviour from the
    persona config is appended when set.
    """

    def __init__(self, persona_config: PersonaConfig | None = None) -> None:
        """Initialize the repository.

        Args:
            persona_config: Additional behaviour for each sister.
        """
        self._persona_config = persona_config or PersonaConfig()
        self._jinja_env = create_jinja_env()

    def get_system_message(self, sister: Kotonoha) -> str:
        """Render the system message for a sister.

        Args:
            sister: Sister to render the message for.

        Returns:
            System message text.
        """
        template = self._jinja_env.get_template("system_message.j2")
        message = template.render(
            full_name=_FULL_NAMES[sister],
            assistant=sister.value,
            character_template=f"character_{sister.value.lower()}.j2",
            behaviour=self._behaviour(sister),
            input_schema=ChatRequest.model_json_schema(),
            output_schema=ChatResponse.model_json_schema(),
        )
        logger.debug("System message rendered for %s", sister.value)
        return message

    def _behaviour(self, sister: Kotonoha) -> str | None:
        if sister == Kotonoha.AKANE:
            return self._persona_config.akane_behaviour
        return self._persona_config.aoi_behaviour
