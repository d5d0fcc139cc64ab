"""Historial acotado de una conversación."""

from collections import deque
from typing import Iterator, Optional

from propabridge.config import get_settings
from propabridge.models import ConversationExchange, SearchCriteria


class ConversationContext:
    """
    Buffer circular con los últimos intercambios de un usuario.

    Lo crea y lo guarda el llamador (uno por conversación); al llenarse
    descarta el intercambio más viejo.
    """

    def __init__(self, maxlen: Optional[int] = None):
        self._exchanges: deque[ConversationExchange] = deque(
            maxlen=maxlen or get_settings().conversation_window
        )

    @property
    def maxlen(self) -> int:
        return self._exchanges.maxlen

    def add(self, exchange: ConversationExchange) -> None:
        self._exchanges.append(exchange)

    def last_criteria(self) -> Optional[SearchCriteria]:
        """Criterios de la búsqueda más reciente, si hubo alguna."""
        for exchange in reversed(self._exchanges):
            if exchange.criteria is not None:
                return exchange.criteria
        return None

    def clear(self) -> None:
        self._exchanges.clear()

    def __iter__(self) -> Iterator[ConversationExchange]:
        return iter(list(self._exchanges))

    def __len__(self) -> int:
        return len(self._exchanges)
