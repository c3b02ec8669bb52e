# ventas_etl/core/companies.py
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from ventas_etl.core.config import settings
from ventas_etl.core.exceptions import SyncConfigurationError


@dataclass(frozen=True)
class Company:
    name: str
    token: str


class CompanyRegistry:
    """Empresas a sincronizar, en el orden en que se recorren.

    El índice de cada empresa es el que usan los parámetros de reanudación
    (start_company_index) y el checkpoint persistido.
    """

    def __init__(self, companies: Iterable[Company]):
        self._companies: Tuple[Company, ...] = tuple(companies)

    def __len__(self) -> int:
        return len(self._companies)

    def __iter__(self):
        return iter(self._companies)

    def __getitem__(self, index: int) -> Company:
        return self._companies[index]

    def name_for_token(self, token: str) -> str:
        for company in self._companies:
            if company.token == token:
                return company.name
        return ""

    def starting_at(self, index: int) -> List[Tuple[int, Company]]:
        if not 0 <= index < len(self._companies):
            raise SyncConfigurationError(
                f"Índice de empresa fuera de rango: {index} (hay {len(self._companies)} empresas)"
            )
        return [(i, self._companies[i]) for i in range(index, len(self._companies))]


def registry_from_settings(config=None) -> CompanyRegistry:
    config = config or settings
    companies = [Company(name=c.name, token=c.token) for c in config.BSALE_COMPANIES]
    if not companies:
        raise SyncConfigurationError("BSALE_COMPANIES está vacío: no hay empresas para sincronizar")
    return CompanyRegistry(companies)

