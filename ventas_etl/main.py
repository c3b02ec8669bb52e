# main.py
from fastapi import FastAPI
from datetime import datetime
import logging
import os
from ventas_etl.api import endpoints
from ventas_etl.api import scheduler_endpoints
from ventas_etl.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
)

app = FastAPI(
    title="Ventas Bsale ETL",
    description="Ingesta de líneas de venta desde Bsale a PostgreSQL, por empresa, con carga idempotente.",
    version="1.0.0"
)

# Incluimos las rutas definidas en los módulos de endpoints
app.include_router(endpoints.router, prefix="/api/v1")
app.include_router(scheduler_endpoints.router, prefix="/api/v1")

@app.get("/")
def root():
    """Endpoint raíz para health check"""
    return {
        "service": "Ventas Bsale ETL",
        "status": "running",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0",
        "description": "Líneas de detalle de ventas Bsale → PostgreSQL"
    }

@app.get("/health", tags=["Monitoring"])
def health_check():
    """
    Endpoint de monitoreo para verificar que el servicio está activo.
    """
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
