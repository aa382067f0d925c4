"""
Модуль контекста отчетности (Reporting Context).

Только читает состояние площадки через порт и строит:
- Рейтинги продавцов и покупателей по репутации
- Список самых продаваемых товаров
- Количество заказов участника
"""

from . import application, domain, infrastructure, interfaces

__all__ = [
    "domain",
    "application",
    "infrastructure",
    "interfaces",
]
