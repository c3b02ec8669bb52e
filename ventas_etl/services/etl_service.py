# ventas_etl/services/etl_service.py - IMPORTACIÓN DE VENTAS BSALE → POSTGRESQL
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ventas_etl.core.companies import Company, CompanyRegistry, registry_from_settings
from ventas_etl.core.config import settings
from ventas_etl.core.dates import DateWindow, business_yesterday, default_window, window_for_range
from ventas_etl.core.exceptions import SyncConfigurationError
from ventas_etl.db.checkpoints import SyncCheckpoint
from ventas_etl.db.postgres import get_pool
from ventas_etl.db.ventas_writer import VentasWriter
from ventas_etl.services.bsale_client import BsaleClient
from ventas_etl.services.enrichment import LineItemEnricher
from ventas_etl.services.row_mapper import SalesRow, map_document


@dataclass
class SyncResult:
    companies: int = 0
    pages: int = 0
    documents: int = 0
    detail_lines: int = 0
    inserted: int = 0
    duplicates: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class SyncOrchestrator:
    """Recorre empresa por empresa y página por página: trae, enriquece, mapea y guarda.

    La página es la unidad de trabajo: se confirma completa (con su checkpoint)
    o se revierte completa. Un error de Bsale o de la base detiene la corrida;
    la posición confirmada queda en el checkpoint de la ventana.
    """

    def __init__(self, registry: CompanyRegistry, writer: VentasWriter,
                 client_factory: Callable[[str], BsaleClient] = BsaleClient,
                 enricher_factory: Callable[[BsaleClient], LineItemEnricher] = LineItemEnricher,
                 resume: bool = None):
        self.registry = registry
        self.writer = writer
        self.checkpoints = getattr(writer, "checkpoints", None)
        self.client_factory = client_factory
        self.enricher_factory = enricher_factory
        self.resume = settings.RESUME_FROM_CHECKPOINT if resume is None else resume

    def _resolve_start(self, window: DateWindow, start_company_index: Optional[int],
                       start_offset: Optional[int]) -> Tuple[int, int]:
        if start_company_index is not None or start_offset is not None:
            return start_company_index or 0, start_offset or 0
        if not self.resume or self.checkpoints is None:
            return 0, 0

        checkpoint = self.checkpoints.load(window)
        if checkpoint is None or checkpoint.completed:
            return 0, 0
        logging.info(f"⏯️ Reanudando desde empresa {checkpoint.company_index}, offset {checkpoint.page_offset}")
        return checkpoint.company_index, checkpoint.page_offset

    def _save_checkpoint(self, checkpoint: SyncCheckpoint):
        if self.checkpoints is not None:
            self.checkpoints.save(checkpoint)

    def run(self, window: DateWindow, start_company_index: Optional[int] = None,
            start_offset: Optional[int] = None) -> SyncResult:
        logging.info(f"🚀 Importando ventas desde {window}")
        self.writer.ensure_schema()

        company_index, offset = self._resolve_start(window, start_company_index, start_offset)
        result = SyncResult()

        # El offset inicial sólo aplica a la primera empresa procesada
        for position, (index, company) in enumerate(self.registry.starting_at(company_index)):
            logging.info(f"🏢 --- Procesando {company.name} ---")
            self._sync_company(index, company, window, offset if position == 0 else 0, result)
            result.companies += 1

            if index + 1 < len(self.registry):
                self._save_checkpoint(SyncCheckpoint(window, index + 1, 0))
            else:
                self._save_checkpoint(SyncCheckpoint(window, index, 0, completed=True))

        logging.info(
            f"🎉 Proceso completado. Total de filas procesadas: {result.detail_lines} "
            f"({result.inserted} nuevas, {result.duplicates} duplicadas)"
        )
        return result

    def _sync_company(self, index: int, company: Company, window: DateWindow,
                      start_offset: int, result: SyncResult):
        client = self.client_factory(company.token)
        enricher = self.enricher_factory(client)
        company_name = self.registry.name_for_token(client.token)

        total_count = 0
        documents = 0
        lines = 0
        for page in client.iter_document_pages(window, start_offset=start_offset):
            if not total_count:
                total_count = page.count

            rows = self.process_page(page.items, enricher, company_name)
            checkpoint = SyncCheckpoint(window, index, page.offset + client.page_size)
            batch = self.writer.save_page(rows, checkpoint=checkpoint if self.checkpoints is not None else None)

            documents += len(page.items)
            lines += len(rows)
            result.pages += 1
            result.documents += len(page.items)
            result.detail_lines += len(rows)
            result.inserted += batch.inserted
            result.duplicates += batch.duplicates

            percent = round((start_offset + documents) / total_count * 100) if total_count else 100
            logging.info(
                f"📄 Progreso: {documents} documentos procesados ({percent}%) - "
                f"{lines} líneas de detalle - Offset: {page.offset}"
            )

        logging.info(f"✅ {company.name}: {documents} documentos procesados, {lines} líneas de detalle")

    @staticmethod
    def process_page(documents: List[Dict[str, Any]], enricher: LineItemEnricher,
                     company_name: str) -> List[SalesRow]:
        logging.info(f"⚙️ Procesando {len(documents)} ventas para {company_name}")
        enricher.prefetch(documents)
        rows: List[SalesRow] = []
        for document in documents:
            rows.extend(map_document(document, enricher.enrich, company_name))
        logging.info(f"Procesadas {len(rows)} filas para {company_name}")
        return rows


def build_orchestrator(registry: CompanyRegistry = None) -> SyncOrchestrator:
    registry = registry or registry_from_settings()
    return SyncOrchestrator(registry, VentasWriter(get_pool()))


DateArg = Union[str, date, datetime, None]


def importar_ventas(start_offset: Optional[int] = None, start_company_index: Optional[int] = None,
                    fecha_inicio: DateArg = None, fecha_fin: DateArg = None,
                    orchestrator: SyncOrchestrator = None) -> SyncResult:
    """Backfill de ventas. Sin fechas usa el rango histórico por defecto.

    Si no se indican start_offset ni start_company_index, se reanuda desde el
    checkpoint de la ventana (cuando existe y no está completado).
    """
    if bool(fecha_inicio) != bool(fecha_fin):
        raise SyncConfigurationError("Se deben indicar fecha_inicio y fecha_fin juntas")
    window = window_for_range(fecha_inicio, fecha_fin) if fecha_inicio else default_window()

    orchestrator = orchestrator or build_orchestrator()
    return orchestrator.run(window, start_company_index=start_company_index, start_offset=start_offset)


def importar_ventas_diarias(now: datetime = None, orchestrator: SyncOrchestrator = None) -> SyncResult:
    """Importa el día anterior completo (00:00:01 a 23:59:59, hora de negocio)."""
    ayer = business_yesterday(now)
    logging.info(f"🔄 IMPORTACIÓN DIARIA DE VENTAS - período: {ayer.isoformat()} (día anterior completo)")
    return importar_ventas(fecha_inicio=ayer, fecha_fin=ayer, orchestrator=orchestrator)
