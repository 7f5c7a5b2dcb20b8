"""
Aritmética monetária.

Valores são sempre Decimal; o arredondamento para centavos
(ROUND_HALF_UP) acontece apenas no resultado final de cada cálculo.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    """Converte valores vindos do banco (int, float, str) em Decimal."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # float via str para não herdar a representação binária
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    """Arredonda para centavos."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
