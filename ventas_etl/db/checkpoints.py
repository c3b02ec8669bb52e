# ventas_etl/db/checkpoints.py
import logging
from dataclasses import dataclass
from typing import Optional

from ventas_etl.core.dates import DateWindow
from ventas_etl.db import models
from ventas_etl.db.postgres import transaction


@dataclass(frozen=True)
class SyncCheckpoint:
    window: DateWindow
    company_index: int
    page_offset: int
    completed: bool = False


class CheckpointStore:
    """Posición de reanudación de una ventana, persistida junto con cada página."""

    def __init__(self, pool):
        self.pool = pool

    def ensure_table(self, cur):
        cur.execute(models.CREATE_CHECKPOINT_SQL)

    def write(self, cur, checkpoint: SyncCheckpoint):
        cur.execute(models.UPSERT_CHECKPOINT_SQL, (
            checkpoint.window.start,
            checkpoint.window.end,
            checkpoint.company_index,
            checkpoint.page_offset,
            checkpoint.completed,
        ))

    def save(self, checkpoint: SyncCheckpoint):
        with transaction(self.pool) as conn:
            with conn.cursor() as cur:
                self.write(cur, checkpoint)

    def load(self, window: DateWindow) -> Optional[SyncCheckpoint]:
        with transaction(self.pool) as conn:
            with conn.cursor() as cur:
                cur.execute(models.SELECT_CHECKPOINT_SQL, (window.start, window.end))
                row = cur.fetchone()
        if row is None:
            return None
        company_index, page_offset, completed = row
        logging.info(
            f"📌 Checkpoint encontrado para {window}: empresa {company_index}, offset {page_offset}"
            f"{' (completado)' if completed else ''}"
        )
        return SyncCheckpoint(window, company_index, page_offset, completed)
