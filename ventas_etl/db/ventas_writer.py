# ventas_etl/db/ventas_writer.py
"""Persistencia idempotente de líneas de venta en PostgreSQL.

Cada página de filas se escribe en una sola transacción con un INSERT
multi-fila `ON CONFLICT (id_detalle, sucursal) DO NOTHING`. Una fila ya
existente cuenta como duplicada; cualquier otro error revierte la página
completa (ninguna de sus filas queda guardada) y se propaga al orquestador.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from psycopg2.extras import execute_values

from ventas_etl.db import models
from ventas_etl.db.checkpoints import CheckpointStore, SyncCheckpoint
from ventas_etl.db.postgres import transaction

PROGRESS_EVERY = 1000


@dataclass
class BatchResult:
    inserted: int = 0
    duplicates: int = 0


class VentasWriter:
    def __init__(self, pool, checkpoints: CheckpointStore = None):
        self.pool = pool
        self.checkpoints = checkpoints if checkpoints is not None else CheckpointStore(pool)
        self.total_inserted = 0

    def ensure_schema(self):
        """Crea la tabla ventas (y la de checkpoints) si no existen."""
        try:
            with transaction(self.pool) as conn:
                with conn.cursor() as cur:
                    cur.execute(models.CREATE_VENTAS_SQL)
                    self.checkpoints.ensure_table(cur)
            logging.info(f"✅ Tabla {models.VENTAS_TABLE} verificada/creada")
        except Exception as e:
            logging.error(f"🔴 Error creando tabla {models.VENTAS_TABLE}: {e}")
            raise

    def save_page(self, rows: Sequence[tuple], checkpoint: Optional[SyncCheckpoint] = None) -> BatchResult:
        """Guarda las filas de una página y su checkpoint en una transacción."""
        result = BatchResult()
        if rows:
            logging.info(f"💾 Intentando guardar {len(rows)} filas en la base de datos...")
        try:
            with transaction(self.pool) as conn:
                with conn.cursor() as cur:
                    if rows:
                        created = execute_values(
                            cur, models.INSERT_VENTAS_SQL, rows, page_size=len(rows), fetch=True
                        )
                        result.inserted = len(created)
                        result.duplicates = len(rows) - result.inserted
                    if checkpoint is not None:
                        self.checkpoints.write(cur, checkpoint)
        except Exception as e:
            logging.error(f"🔴 Error en la transacción, rollback de {len(rows)} filas: {e}")
            raise

        self._log_progress(result.inserted)
        if rows:
            logging.info(f"✅ {result.inserted} ventas guardadas exitosamente en la base de datos")
        if result.duplicates:
            logging.info(f"ℹ️ {result.duplicates} filas duplicadas fueron ignoradas")
        return result

    def _log_progress(self, inserted: int):
        before = self.total_inserted
        self.total_inserted += inserted
        if self.total_inserted // PROGRESS_EVERY > before // PROGRESS_EVERY:
            logging.info(f"📈 Insertadas {self.total_inserted // PROGRESS_EVERY * PROGRESS_EVERY} filas...")
