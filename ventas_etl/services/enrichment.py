# ventas_etl/services/enrichment.py
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional

import requests

from ventas_etl.core.config import settings
from ventas_etl.services.bsale_client import BsaleClient

# Fallas de red o de payload que no deben abortar la línea de detalle
LOOKUP_ERRORS = (requests.exceptions.RequestException, ValueError, TypeError, AttributeError)


@dataclass(frozen=True)
class VariantInfo:
    product_name: str = ""
    product_type_name: str = ""


@dataclass(frozen=True)
class CostInfo:
    # None cuando Bsale no entrega un costo utilizable (falla, 0, no numérico)
    average_cost: Optional[int] = None


@dataclass(frozen=True)
class EnrichedDetail:
    detail: Dict[str, Any]
    variant_id: Optional[int]
    product_name: str
    product_type_name: str
    average_cost: Optional[int]
    margin: Decimal


def _round_cost(value: Any) -> Optional[int]:
    if value in (None, "", 0):
        return None
    try:
        cost = Decimal(str(value))
    except InvalidOperation:
        return None
    if not cost.is_finite():
        return None
    rounded = int(cost.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return rounded or None


def _to_decimal(value: Any) -> Decimal:
    try:
        number = Decimal(str(value)) if value not in (None, "") else Decimal(0)
    except InvalidOperation:
        return Decimal(0)
    return number if number.is_finite() else Decimal(0)


def compute_margin(net_unit_value: Any, average_cost: Optional[int]) -> Decimal:
    """Margen neto unitario = netUnitValue - averageCost (costo 0 si no hay costo)."""
    return _to_decimal(net_unit_value) - Decimal(average_cost or 0)


class LineItemEnricher:
    """Resuelve producto, tipo de producto y costo promedio de cada variante vendida.

    Las consultas se memorizan por id de variante durante la vida del enricher
    (una corrida) y las variantes nuevas de una página se resuelven con un pool
    acotado de max_workers hilos.
    """

    def __init__(self, client: BsaleClient, max_workers: int = None):
        self.client = client
        self.max_workers = max_workers or settings.ENRICHMENT_MAX_WORKERS
        self._variants: Dict[int, VariantInfo] = {}
        self._costs: Dict[int, CostInfo] = {}
        self.lookups = 0

    def _lookup_variant(self, variant_id: int) -> VariantInfo:
        try:
            data = self.client.get_variant(variant_id)
            product = data.get("product") or {}
            product_type = product.get("product_type") or {}
            return VariantInfo(
                product_name=product.get("name") or "",
                product_type_name=product_type.get("name") or "",
            )
        except LOOKUP_ERRORS as e:
            logging.warning(f"⚠️ Error obteniendo producto de variante {variant_id}: {e}")
            return VariantInfo()

    def _lookup_cost(self, variant_id: int) -> CostInfo:
        try:
            data = self.client.get_variant_costs(variant_id)
            return CostInfo(average_cost=_round_cost(data.get("averageCost")))
        except LOOKUP_ERRORS as e:
            logging.warning(f"⚠️ Error obteniendo costo de variante {variant_id}: {e}")
            return CostInfo()

    def _resolve(self, variant_id: int):
        return variant_id, self._lookup_variant(variant_id), self._lookup_cost(variant_id)

    def prefetch(self, documents: Iterable[Dict[str, Any]]) -> None:
        """Resuelve de una vez las variantes de la página que aún no están en caché."""
        pending = []
        for doc in documents:
            for detail in (doc.get("details") or {}).get("items") or []:
                variant_id = (detail.get("variant") or {}).get("id")
                if variant_id and variant_id not in self._variants and variant_id not in pending:
                    pending.append(variant_id)
        if not pending:
            return

        logging.info(f"🔎 Resolviendo {len(pending)} variantes nuevas ({self.max_workers} en paralelo)...")
        self.lookups += len(pending)
        if self.max_workers <= 1:
            results = [self._resolve(variant_id) for variant_id in pending]
        else:
            executor = ThreadPoolExecutor(max_workers=self.max_workers)
            try:
                results = list(executor.map(self._resolve, pending))
            except BaseException:
                # Ctrl-C o error: no esperar las consultas que siguen en cola
                executor.shutdown(wait=False, cancel_futures=True)
                raise
            executor.shutdown()
        for variant_id, variant, cost in results:
            self._variants[variant_id] = variant
            self._costs[variant_id] = cost

    def enrich(self, detail: Dict[str, Any]) -> EnrichedDetail:
        variant_id = (detail.get("variant") or {}).get("id")
        variant, cost = VariantInfo(), CostInfo()
        if variant_id:
            if variant_id not in self._variants:
                self.lookups += 1
                _, self._variants[variant_id], self._costs[variant_id] = self._resolve(variant_id)
            variant, cost = self._variants[variant_id], self._costs[variant_id]

        return EnrichedDetail(
            detail=detail,
            variant_id=variant_id,
            product_name=variant.product_name,
            product_type_name=variant.product_type_name,
            average_cost=cost.average_cost,
            margin=compute_margin(detail.get("netUnitValue"), cost.average_cost),
        )
