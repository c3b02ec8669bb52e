# ventas_etl/cli.py
"""Comandos de consola: backfill de ventas y carga diaria (pensada para cron).

    ventas-backfill --fecha-inicio 2024-03-01 --fecha-fin 2024-03-31
    ventas-backfill --start-company-index 2 --start-offset 350
    ventas-diarias
"""
import argparse
import logging
import sys
from datetime import datetime, timezone

from ventas_etl.core.config import settings
from ventas_etl.db.postgres import close_pool
from ventas_etl.services import etl_service


def setup_logging():
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def _cron(message: str):
    logging.info(f"[CRON] {datetime.now(timezone.utc).isoformat()} - {message}")


def build_backfill_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ventas-backfill",
        description="Importa ventas de Bsale a PostgreSQL para todas las empresas configuradas.",
    )
    parser.add_argument("--start-offset", type=int, default=None,
                        help="Offset de página para la primera empresa procesada")
    parser.add_argument("--start-company-index", type=int, default=None,
                        help="Índice de la empresa desde la que se parte")
    parser.add_argument("--fecha-inicio", default=None, help="Fecha inicial YYYY-MM-DD (hora de negocio)")
    parser.add_argument("--fecha-fin", default=None, help="Fecha final YYYY-MM-DD (hora de negocio)")
    return parser


def main_backfill(argv=None) -> int:
    setup_logging()
    args = build_backfill_parser().parse_args(argv)
    try:
        result = etl_service.importar_ventas(
            start_offset=args.start_offset,
            start_company_index=args.start_company_index,
            fecha_inicio=args.fecha_inicio,
            fecha_fin=args.fecha_fin,
        )
        logging.info(f"✅ Backfill completado: {result.as_dict()}")
        return 0
    except KeyboardInterrupt:
        logging.warning("🛑 Proceso interrumpido")
        return 0
    finally:
        close_pool()


def main_daily(argv=None) -> int:
    setup_logging()
    argparse.ArgumentParser(
        prog="ventas-diarias",
        description="Importa las ventas del día anterior (hora de negocio) para todas las empresas.",
    ).parse_args(argv)

    try:
        result = etl_service.importar_ventas_diarias()
        logging.info(f"✅ Importación diaria completada: {result.as_dict()}")
        _cron("Importación diaria completada")
        return 0
    except KeyboardInterrupt:
        logging.warning("🛑 Proceso interrumpido")
        _cron("Proceso interrumpido por el usuario")
        return 0
    except Exception as e:
        logging.exception(f"🔴 Error en la importación diaria: {e}")
        _cron(f"Error: {e}")
        return 1
    finally:
        close_pool()


if __name__ == "__main__":
    sys.exit(main_daily())
