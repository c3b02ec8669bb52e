# ventas_etl/core/exceptions.py


class VentasETLError(Exception):
    """Error base del ETL de ventas"""
    pass


class SyncConfigurationError(VentasETLError):
    """Configuración inválida detectada antes de llamar a Bsale"""
    pass
