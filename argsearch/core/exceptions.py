# argsearch/core/exceptions.py


class ConfigurationError(ValueError):
    """Отсутствующий или некорректный параметр конструктора / конфигурации."""


class ResourceError(RuntimeError):
    """Словарь, стоп-лист или модель недоступны при первом использовании."""

    def __init__(self, resource: str, reason: str):
        super().__init__(f"Resource '{resource}' is unavailable: {reason}")
        self.resource = resource


class StreamProtocolError(RuntimeError):
    """
    Нарушение контракта потока токенов (синоним без основного токена,
    некорректные спаны теггера и т.п.). Не восстанавливается.
    """
