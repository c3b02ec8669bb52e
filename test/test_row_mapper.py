# test/test_row_mapper.py
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import make_detail, make_document
from ventas_etl.services.enrichment import EnrichedDetail, compute_margin
from ventas_etl.services.row_mapper import document_context, format_clp, map_document, to_row


@pytest.mark.parametrize("value, expected", [
    ("1.234.567", 1234567),
    ("8.403", 8403),
    (15000, 15000),
    (8403.5, Decimal("8403.5")),
    ("1.234,5", Decimal("1234.5")),
])
def test_format_clp_parses_amounts(value, expected):
    assert format_clp(value) == expected


@pytest.mark.parametrize("value", ["", None, float("nan"), "NaN", "abc", "   "])
def test_format_clp_maps_missing_values_to_none_not_zero(value):
    assert format_clp(value) is None


def test_format_clp_keeps_real_zero():
    assert format_clp(0) == 0
    assert format_clp("0") == 0


def _enriched(detail, product="Collar", product_type="Accesorios", cost=6000):
    return EnrichedDetail(
        detail=detail,
        variant_id=detail["variant"]["id"],
        product_name=product,
        product_type_name=product_type,
        average_cost=cost,
        margin=compute_margin(detail["netUnitValue"], cost),
    )


def test_to_row_maps_document_and_detail_fields():
    detail = make_detail(501, 77, net_unit_value=10000, quantity=2)
    document = make_document(10, [detail])

    row = to_row(document, _enriched(detail), "COMERCIALIZADORA PRUEBA LTDA")

    assert row.id_bsale == 10
    assert row.id_detalle == 501
    assert row.empresa == "COMERCIALIZADORA PRUEBA LTDA"
    assert row.sucursal == "TIENDA LA LAGUNA"
    assert row.fecha == datetime(2024, 3, 15, 3, 0, tzinfo=timezone.utc)
    assert row.sku == "SKU-77"
    assert row.producto_servicio == "Collar"
    assert row.tipo_producto_servicio == "Accesorios"
    assert row.variante == "Talla 77"
    assert row.descripcion_completa == "Collar Talla 77"
    assert row.subtotal_neto == 20000
    assert row.margen_neto == 4000
    assert row.costo_neto == 6000
    assert row.cantidad == 2
    assert row.vendedor == "Ana Pérez"
    assert row.plataforma == "Tarjeta de Crédito"
    assert row.tipo_documento == "BOLETA ELECTRÓNICA"
    assert row.nro_documento == "1010"


def test_to_row_without_cost_or_product_uses_nulls():
    detail = make_detail(502, 78, net_unit_value=10000)
    row = to_row(make_document(11, [detail]), _enriched(detail, product="", product_type="", cost=None), "X")

    assert row.costo_neto is None
    assert row.margen_neto == 10000
    assert row.producto_servicio is None
    assert row.descripcion_completa == "Talla 78"


def test_document_context_falls_back_to_company_and_bare_payment_list():
    document = make_document(12, [])
    document["office"] = None
    document["sellers"] = {"items": []}
    document["payments"] = [{"name": "Efectivo"}]
    document["document_type"] = None

    context = document_context(document, "TIENDA PRUEBA SPA")

    assert context == {
        "sucursal": "TIENDA PRUEBA SPA",
        "vendedor": "",
        "plataforma": "Efectivo",
        "tipo_documento": "",
    }


def test_map_document_yields_one_row_per_detail_line():
    details = [make_detail(601, 1), make_detail(602, 2), make_detail(603, 1)]
    document = make_document(13, details)

    rows = map_document(document, _enriched, "EMPRESA")

    assert [row.id_detalle for row in rows] == [601, 602, 603]
    assert map_document({"id": 14, "details": None}, _enriched, "EMPRESA") == []
