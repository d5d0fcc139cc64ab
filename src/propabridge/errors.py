"""Excepciones del sistema."""


class PropabridgeError(Exception):
    """Excepción base de Propabridge."""
    pass


class ConfigurationError(PropabridgeError):
    """Configuración faltante o inválida (gazetteer, credenciales)."""
    pass


class ExtractionError(PropabridgeError):
    """El LLM no pudo extraer intención o criterios del mensaje."""
    pass


class RepositoryError(PropabridgeError):
    """Error en una operación contra la base de datos."""
    pass
