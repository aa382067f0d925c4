"""
Торговая площадка: участники и роли, каталог, заказы с взаимной
отменой, двусторонняя репутация и отчеты.
"""

from .bootstrap import bootstrap_app

__all__ = ["bootstrap_app"]
