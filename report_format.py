"""
Display formatting for credit report values (BRL currency, dd/mm/yyyy dates,
CNPJ tax ids and 44-digit document keys).
"""

import re
from datetime import date, datetime
from typing import Optional, Union

NOT_INFORMED = 'Not informed'

REGIME_NAMES = {
    'simples': 'Simples Nacional',
    'presumido': 'Lucro Presumido',
    'real': 'Lucro Real',
}


def format_currency(value: float) -> str:
    """Format as Brazilian reais, e.g. ``R$ 1.500,00``."""
    sign = '-' if value < 0 else ''
    text = f"{abs(value):,.2f}"
    text = text.replace(',', '_').replace('.', ',').replace('_', '.')
    return f"{sign}R$ {text}"


def format_percent(value: float, total: float) -> str:
    if not total:
        return '0.0%'
    return f"{value / total * 100:.1f}%"


def format_date(value: Union[date, datetime, str]) -> str:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime('%d/%m/%Y')


def format_datetime(value: datetime) -> str:
    return value.strftime('%d/%m/%Y at %H:%M')


def format_tax_id(tax_id: str) -> str:
    """Format a 14-digit CNPJ as ``NN.NNN.NNN/NNNN-NN``; other ids unchanged."""
    digits = re.sub(r'\D', '', tax_id or '')
    if len(digits) != 14:
        return tax_id
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def format_document_key(key: Optional[str]) -> str:
    """Group a 44-digit access key in blocks of four digits."""
    if not key or not key.strip():
        return NOT_INFORMED
    digits = re.sub(r'\D', '', key)
    if len(digits) != 44:
        return key
    return ' '.join(digits[i:i + 4] for i in range(0, 44, 4))


def regime_name(regime: Optional[str]) -> str:
    if not regime:
        return NOT_INFORMED
    return REGIME_NAMES.get(regime, regime)
