"""
Модуль контекста торговли (Trading Context).

Отвечает за работу торговой площадки, включая:
- Регистрацию участников и смену ролей
- Публикацию товаров и учет остатков
- Жизненный цикл заказов и взаимную отмену
- Двустороннюю репутацию по завершенным заказам
"""

from . import application, domain, event_handlers, infrastructure, interfaces

__all__ = [
    "domain",
    "application",
    "event_handlers",
    "infrastructure",
    "interfaces",
]
