# ventas_etl/services/row_mapper.py
import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, NamedTuple, Optional

from ventas_etl.services.enrichment import EnrichedDetail

# Bsale entrega emissionDate como medianoche UTC del día local; se corre 3 horas
# para guardarlo en UTC-3 fijo, igual que la ventana de consulta.
EMISSION_DATE_OFFSET = timedelta(hours=3)


class SalesRow(NamedTuple):
    id_bsale: int
    id_detalle: int
    empresa: str
    sucursal: str
    fecha: Optional[datetime]
    sku: Optional[str]
    producto_servicio: Optional[str]
    tipo_producto_servicio: Optional[str]
    variante: Optional[str]
    descripcion_completa: Optional[str]
    subtotal_bruto: Optional[Decimal]
    subtotal_neto: Optional[Decimal]
    margen_neto: Optional[Decimal]
    costo_neto: Optional[Decimal]
    impuestos: Optional[Decimal]
    cantidad: Optional[Any]
    vendedor: Optional[str]
    plataforma: Optional[str]
    tipo_documento: Optional[str]
    nro_documento: Optional[str]


def format_clp(value: Any) -> Optional[Decimal]:
    """Normaliza un monto CLP. '1.234.567' -> 1234567.

    Los strings traen '.' como separador de miles (y ',' como decimal);
    los números se toman tal cual. Vacío, None, NaN o no numérico -> None,
    para distinguir "sin dato" de un monto cero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    else:
        text = str(value).strip().replace(".", "").replace(",", ".")
        if not text:
            return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def emission_timestamp(emission_date: Any) -> Optional[datetime]:
    if emission_date in (None, ""):
        return None
    return datetime.fromtimestamp(int(emission_date), tz=timezone.utc) + EMISSION_DATE_OFFSET


def _first_item(collection: Any) -> Dict[str, Any]:
    # Bsale expande las colecciones como {"items": [...]}, a veces como lista directa
    if isinstance(collection, dict):
        collection = collection.get("items")
    if isinstance(collection, list) and collection:
        return collection[0] or {}
    return {}


def document_context(document: Dict[str, Any], company_name: str) -> Dict[str, str]:
    """Sucursal, vendedor, plataforma (medio de pago) y tipo de documento de un documento."""
    office = document.get("office") or {}
    seller = _first_item(document.get("sellers"))
    payment = _first_item(document.get("payments"))
    document_type = document.get("document_type") or {}

    seller_name = ""
    if seller:
        seller_name = f"{seller.get('firstName') or ''} {seller.get('lastName') or ''}".strip()

    return {
        "sucursal": office.get("name") or company_name,
        "vendedor": seller_name,
        "plataforma": payment.get("name") or "",
        "tipo_documento": document_type.get("name") or "",
    }


def to_row(document: Dict[str, Any], enriched: EnrichedDetail, company_name: str,
           context: Dict[str, str] = None) -> SalesRow:
    context = context or document_context(document, company_name)
    detail = enriched.detail
    variant = detail.get("variant") or {}
    variant_description = variant.get("description") or ""
    number = document.get("number")

    return SalesRow(
        id_bsale=document.get("id"),
        id_detalle=detail.get("id"),
        empresa=company_name,
        sucursal=context["sucursal"],
        fecha=emission_timestamp(document.get("emissionDate")),
        sku=variant.get("code") or None,
        producto_servicio=enriched.product_name or None,
        tipo_producto_servicio=enriched.product_type_name or None,
        variante=variant_description or None,
        descripcion_completa=f"{enriched.product_name} {variant_description}".strip() or None,
        subtotal_bruto=format_clp(detail.get("totalAmount")),
        subtotal_neto=format_clp(detail.get("netAmount")),
        margen_neto=format_clp(enriched.margin),
        costo_neto=format_clp(enriched.average_cost),
        impuestos=format_clp(detail.get("taxAmount")),
        cantidad=detail.get("quantity") or None,
        vendedor=context["vendedor"] or None,
        plataforma=context["plataforma"] or None,
        tipo_documento=context["tipo_documento"] or None,
        nro_documento=str(number) if number not in (None, "") else None,
    )


def map_document(document: Dict[str, Any], enrich, company_name: str) -> List[SalesRow]:
    """Proyecta cada línea de detalle del documento a una SalesRow. `enrich` es LineItemEnricher.enrich."""
    details = (document.get("details") or {}).get("items")
    if not isinstance(details, list):
        return []
    context = document_context(document, company_name)
    return [to_row(document, enrich(detail), company_name, context) for detail in details]
