"""
Dados e construtores compartilhados pelos testes.
"""
from datetime import datetime, timedelta, timezone

from faturamento.models.time_entry import TimeEntryType
from faturamento.schemas.time_entry import TimeEntryCreate

# Documentos válidos (dígitos verificadores conferidos)
CPF_VALIDO = "529.982.247-25"
CPF_VALIDO_2 = "111.444.777-35"
CNPJ_VALIDO = "11.222.333/0001-81"
CNPJ_VALIDO_2 = "12.345.678/0001-95"


def at(day: str, hour: int, minute: int = 0) -> datetime:
    """Instante UTC em `day` (YYYY-MM-DD); entre 12h e 20h UTC a data local é a mesma."""
    year, month, dom = (int(p) for p in day.split("-"))
    return datetime(year, month, dom, hour, minute, tzinfo=timezone.utc)


def make_entry(
    start: datetime,
    end: datetime,
    entry_type: TimeEntryType = TimeEntryType.CASE_WORK,
    **kwargs,
) -> TimeEntryCreate:
    """Payload de lançamento com descrição padrão."""
    kwargs.setdefault("activity_description", "Análise do processo")
    return TimeEntryCreate(
        entry_type=entry_type,
        start_time=start,
        end_time=end,
        **kwargs,
    )


class Relogio:
    """Relógio controlável, injetado no cronômetro."""

    def __init__(self, inicio: datetime):
        self.agora = inicio

    def __call__(self) -> datetime:
        return self.agora

    def avancar(self, minutes: int = 0, seconds: int = 0) -> None:
        self.agora += timedelta(minutes=minutes, seconds=seconds)
