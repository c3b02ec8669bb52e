# ventas_etl/api/endpoints.py
from fastapi import APIRouter, Depends, HTTPException
from datetime import date
from typing import Optional
import logging

from ventas_etl.core.exceptions import SyncConfigurationError
from ventas_etl.services import etl_service

router = APIRouter()


# Inyección de dependencias para obtener el orquestador (pool PostgreSQL + empresas)
def get_orchestrator():
    try:
        orchestrator = etl_service.build_orchestrator()
    except SyncConfigurationError as e:
        logging.error(f"Marcador: configuración inválida al preparar el orquestador - {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logging.exception("Error preparando el orquestador de ventas")
        raise HTTPException(status_code=500, detail=f"Error preparando la sincronización de ventas: {e}")
    yield orchestrator


@router.post("/etl/ventas", tags=["ETL"])
def run_ventas_sync(start_offset: Optional[int] = None,
                    start_company_index: Optional[int] = None,
                    fecha_inicio: Optional[date] = None,
                    fecha_fin: Optional[date] = None,
                    orchestrator=Depends(get_orchestrator)):
    """
    Ejecuta el backfill de ventas para todas las empresas.
    - Sin fechas se usa el rango histórico por defecto; si se indican, van ambas (YYYY-MM-DD).
    - Sin start_offset ni start_company_index se reanuda desde el checkpoint de la ventana.
    """
    try:
        logging.info("Marcador: inicio run_ventas_sync")
        result = etl_service.importar_ventas(
            start_offset=start_offset,
            start_company_index=start_company_index,
            fecha_inicio=fecha_inicio,
            fecha_fin=fecha_fin,
            orchestrator=orchestrator,
        )
        logging.info("Marcador: fin run_ventas_sync")
        return {"status": "sincronización completada", **result.as_dict()}

    except SyncConfigurationError as e:
        logging.error(f"Marcador: configuración inválida en run_ventas_sync - {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logging.exception("Error en la sincronización de ventas")
        raise HTTPException(status_code=500, detail=f"Error en la sincronización de ventas: {e}. Revise los logs del servidor para más detalles.")
