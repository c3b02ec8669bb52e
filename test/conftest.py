# test/conftest.py
import json
import logging
import os
import re

import pytest

# Configuración mínima antes de importar ventas_etl.core.config
os.environ.setdefault("BSALE_COMPANIES", json.dumps([
    {"name": "COMERCIALIZADORA PRUEBA LTDA", "token": "token-a"},
    {"name": "TIENDA PRUEBA SPA", "token": "token-b"},
]))
os.environ.setdefault("BSALE_REQUEST_PAUSE", "0")
os.environ.setdefault("ENRICHMENT_MAX_WORKERS", "1")

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

from ventas_etl.core.companies import Company, CompanyRegistry  # noqa: E402
from ventas_etl.services.bsale_client import BsaleClient  # noqa: E402
from ventas_etl.db.ventas_writer import BatchResult  # noqa: E402


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.text = str(payload) if isinstance(payload, Exception) else json.dumps(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeBsaleSession:
    """Sesión HTTP que responde como la API de Bsale a partir de datos en memoria.

    pages: lista de listas de documentos (una por página, en orden de offset).
    variants / costs: payloads por id de variante; un Exception se lanza al consultarlo.
    """

    def __init__(self, pages, variants=None, costs=None, page_size=50, count=None):
        self.pages = pages
        self.variants = variants or {}
        self.costs = costs or {}
        self.page_size = page_size
        self.count = count if count is not None else sum(len(p) for p in pages)
        self.calls = []
        self.headers = {}

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        if url.endswith("/documents.json"):
            index = params["offset"] // self.page_size
            items = self.pages[index] if index < len(self.pages) else []
            return FakeResponse({"count": self.count, "items": items, "offset": params["offset"]})

        match = re.search(r"/variants/(\d+)/costs\.json$", url)
        if match:
            return self._respond(self.costs.get(int(match.group(1)), {"averageCost": 0}))
        match = re.search(r"/variants/(\d+)\.json$", url)
        if match:
            return self._respond(self.variants.get(int(match.group(1)), {}))
        return FakeResponse({"error": "not found"}, status_code=404)

    @staticmethod
    def _respond(payload):
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, FakeResponse):
            return payload
        return FakeResponse(payload)

    def document_requests(self):
        return [params for url, params in self.calls if url.endswith("/documents.json")]

    def variant_requests(self, variant_id):
        return [url for url, _ in self.calls if f"/variants/{variant_id}.json" in url]


class InMemoryCheckpoints:
    def __init__(self):
        self.saved = {}
        self.history = []

    def load(self, window):
        return self.saved.get((window.start, window.end))

    def save(self, checkpoint):
        self.saved[(checkpoint.window.start, checkpoint.window.end)] = checkpoint
        self.history.append(checkpoint)


class InMemoryVentasWriter:
    """Tabla ventas en memoria con UNIQUE(id_detalle, sucursal) y transacción por página."""

    def __init__(self, fail_on=None):
        self.rows = {}
        self.checkpoints = InMemoryCheckpoints()
        self.schema_calls = 0
        self.fail_on = fail_on

    def ensure_schema(self):
        self.schema_calls += 1

    def save_page(self, rows, checkpoint=None):
        staged = dict(self.rows)
        result = BatchResult()
        for row in rows:
            if self.fail_on and self.fail_on(row):
                raise RuntimeError(f"value too long for column sku: {row.sku}")
            key = (row.id_detalle, row.sucursal)
            if key in staged:
                result.duplicates += 1
                continue
            staged[key] = row
            result.inserted += 1
        self.rows = staged
        if checkpoint is not None:
            self.checkpoints.save(checkpoint)
        return result


def make_detail(detail_id, variant_id, net_unit_value=10000, quantity=1, code=None):
    return {
        "id": detail_id,
        "quantity": quantity,
        "netUnitValue": net_unit_value,
        "totalAmount": net_unit_value * quantity * 1.19,
        "netAmount": net_unit_value * quantity,
        "taxAmount": net_unit_value * quantity * 0.19,
        "variant": {"id": variant_id, "code": code or f"SKU-{variant_id}", "description": f"Talla {variant_id}"},
    }


def make_document(doc_id, details, office="TIENDA LA LAGUNA", emission_date=1710460800):
    return {
        "id": doc_id,
        "number": 1000 + doc_id,
        "emissionDate": emission_date,
        "office": {"id": 1, "name": office},
        "document_type": {"id": 1, "name": "BOLETA ELECTRÓNICA"},
        "sellers": {"items": [{"firstName": "Ana", "lastName": "Pérez"}]},
        "payments": {"items": [{"name": "Tarjeta de Crédito"}]},
        "details": {"items": details},
    }


@pytest.fixture
def registry():
    return CompanyRegistry([
        Company("COMERCIALIZADORA PRUEBA LTDA", "token-a"),
        Company("TIENDA PRUEBA SPA", "token-b"),
    ])


@pytest.fixture
def client_for():
    """Construye BsaleClient sobre FakeBsaleSession sin pausa entre páginas."""
    def _build(session, token="token-a", page_size=50):
        return BsaleClient(token, base_url="https://api.bsale.io/v1", page_size=page_size,
                           pause=0, session=session)
    return _build
