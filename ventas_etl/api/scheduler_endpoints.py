# ventas_etl/api/scheduler_endpoints.py - ENDPOINTS PARA EL SCHEDULER
from fastapi import APIRouter, Depends, HTTPException, Request
from datetime import datetime
import logging
import asyncio
from concurrent.futures import ThreadPoolExecutor

from ventas_etl.api.endpoints import get_orchestrator
from ventas_etl.core.config import settings
from ventas_etl.core.exceptions import SyncConfigurationError
from ventas_etl.services import etl_service

router = APIRouter()


@router.post("/scheduler/etl/daily", tags=["Scheduler"])
async def run_daily_etl(request: Request, orchestrator=Depends(get_orchestrator)):
    """
    Endpoint para el scheduler - importa las ventas del día anterior completo.
    """
    start_time = datetime.now()
    logging.info(f"🚀 Iniciando importación diaria via scheduler - {start_time}")
    user_agent = request.headers.get("user-agent", "")
    logging.info(f"Solicitado por: {user_agent}")

    try:
        # Ejecutar el ETL en un hilo para no bloquear el event loop
        loop = asyncio.get_event_loop()
        with ThreadPoolExecutor(max_workers=1) as executor:
            result = await loop.run_in_executor(
                executor, lambda: etl_service.importar_ventas_diarias(orchestrator=orchestrator)
            )

        end_time = datetime.now()
        duration = end_time - start_time
        logging.info(f"✅ Importación diaria completada: {duration}")
        return {
            "status": "success",
            "message": "Importación diaria completada exitosamente",
            "start_time": start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "duration_seconds": duration.total_seconds(),
            **result.as_dict(),
        }

    except SyncConfigurationError as e:
        logging.error(f"🔴 [CRON] Configuración inválida: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logging.error(f"🔴 [CRON] Error en importación diaria: {e}")
        raise HTTPException(status_code=500, detail=f"Error en importación diaria: {str(e)}")


@router.get("/scheduler/health", tags=["Scheduler"])
async def health_check():
    """
    Health check del servicio de ingesta
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "ventas-bsale-etl",
        "database_configured": bool(settings.DATABASE_URL),
        "companies_configured": len(settings.BSALE_COMPANIES),
    }
