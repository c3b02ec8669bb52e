# ventas_etl/db/models.py
# Definiciones de tablas PostgreSQL del ETL de ventas

VENTAS_TABLE = "ventas"
CHECKPOINT_TABLE = "ventas_sync_checkpoint"

# Orden de columnas de una SalesRow (coincide con los campos de row_mapper.SalesRow)
VENTAS_COLUMNS = (
    "id_bsale", "id_detalle", "empresa", "sucursal", "fecha", "sku",
    "producto_servicio", "tipo_producto_servicio", "variante", "descripcion_completa",
    "subtotal_bruto", "subtotal_neto", "margen_neto", "costo_neto", "impuestos",
    "cantidad", "vendedor", "plataforma", "tipo_documento", "nro_documento",
)

CREATE_VENTAS_SQL = f"""
CREATE TABLE IF NOT EXISTS {VENTAS_TABLE} (
    id SERIAL PRIMARY KEY,
    id_bsale INTEGER,
    id_detalle INTEGER,
    empresa VARCHAR(100),
    sucursal VARCHAR(100),
    fecha TIMESTAMP WITH TIME ZONE,
    sku VARCHAR(100),
    producto_servicio VARCHAR(255),
    tipo_producto_servicio VARCHAR(100),
    variante VARCHAR(255),
    descripcion_completa TEXT,
    subtotal_bruto NUMERIC,
    subtotal_neto NUMERIC,
    margen_neto NUMERIC,
    costo_neto NUMERIC,
    impuestos NUMERIC,
    cantidad NUMERIC,
    vendedor VARCHAR(100),
    plataforma VARCHAR(100),
    tipo_documento VARCHAR(100),
    nro_documento VARCHAR(50),
    fecha_creacion TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(id_detalle, sucursal)
);
"""

CREATE_CHECKPOINT_SQL = f"""
CREATE TABLE IF NOT EXISTS {CHECKPOINT_TABLE} (
    window_start BIGINT NOT NULL,
    window_end BIGINT NOT NULL,
    company_index INTEGER NOT NULL,
    page_offset INTEGER NOT NULL,
    completed BOOLEAN NOT NULL DEFAULT FALSE,
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (window_start, window_end)
);
"""

# Inserción multi-fila: los conflictos de (id_detalle, sucursal) se omiten y
# RETURNING entrega sólo las filas efectivamente creadas.
INSERT_VENTAS_SQL = (
    f"INSERT INTO {VENTAS_TABLE} ({', '.join(VENTAS_COLUMNS)}) VALUES %s "
    "ON CONFLICT (id_detalle, sucursal) DO NOTHING RETURNING id"
)

UPSERT_CHECKPOINT_SQL = f"""
INSERT INTO {CHECKPOINT_TABLE} (window_start, window_end, company_index, page_offset, completed, updated_at)
VALUES (%s, %s, %s, %s, %s, CURRENT_TIMESTAMP)
ON CONFLICT (window_start, window_end) DO UPDATE SET
    company_index = EXCLUDED.company_index,
    page_offset = EXCLUDED.page_offset,
    completed = EXCLUDED.completed,
    updated_at = CURRENT_TIMESTAMP
"""

SELECT_CHECKPOINT_SQL = f"""
SELECT company_index, page_offset, completed
FROM {CHECKPOINT_TABLE}
WHERE window_start = %s AND window_end = %s
"""
