"""Modelo de intercambio de conversación (mensaje + respuesta)."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from propabridge.models.criteria import SearchCriteria


class ConversationExchange(BaseModel):
    """Un mensaje del usuario junto con la respuesta que generó."""

    message: str = Field(..., description="Texto enviado por el usuario")
    intent: str = Field("other", description="Intención detectada")
    criteria: Optional[SearchCriteria] = Field(
        None, description="Criterios extraídos (solo búsquedas)"
    )
    response: str = Field("", description="Texto de respuesta enviado")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_db_dict(self, phone: str) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return {
            "phone": phone,
            "message": self.message,
            "intent": self.intent,
            "response": self.response,
            "created_at": self.timestamp.isoformat(),
        }
