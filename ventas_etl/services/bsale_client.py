# ventas_etl/services/bsale_client.py
import requests
import time
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ventas_etl.core.config import settings
from ventas_etl.core.dates import DateWindow

DOCUMENT_EXPAND = "[details,office,payments,sellers,document_types]"
VARIANT_EXPAND = "[product,product_type]"
RETRY_STATUSES = (429, 500, 502, 503, 504)


@dataclass
class DocumentPage:
    offset: int
    count: int
    items: List[Dict[str, Any]]


def build_session(token: str, max_retries: int = None, backoff_factor: float = None) -> requests.Session:
    """Sesión HTTP autenticada con reintentos sólo para fallas transitorias (429/5xx, conexión)."""
    retry = Retry(
        total=settings.BSALE_MAX_RETRIES if max_retries is None else max_retries,
        backoff_factor=settings.BSALE_BACKOFF_FACTOR if backoff_factor is None else backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    session = requests.Session()
    session.mount("https://", HTTPAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    session.headers.update({
        'access_token': token,
        'Content-Type': 'application/json'
    })
    return session


class BsaleClient:
    def __init__(self, token: str, base_url: str = None, page_size: int = None,
                 timeout: int = None, pause: float = None, session: requests.Session = None):
        self.token = token
        self.base_url = (base_url or settings.BSALE_API_URL).rstrip("/")
        self.page_size = page_size or settings.BSALE_PAGE_SIZE
        self.timeout = timeout or settings.BSALE_TIMEOUT
        self.pause = settings.BSALE_REQUEST_PAUSE if pause is None else pause
        self.session = session or build_session(token)

    def fetch(self, endpoint: str, params: Dict = None) -> Dict[str, Any]:
        """
        Realiza una petición GET canónica a la API de Bsale.
        endpoint: ruta relativa (ejemplo: 'variants/123/costs.json')
        params: diccionario de parámetros para la consulta
        Devuelve el JSON decodificado; los errores HTTP o de decodificación se propagan.
        """
        url = f"{self.base_url}/{endpoint}"
        response = self.session.get(url, params=params, timeout=self.timeout)
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as http_err:
            logging.error(f"🔴 [BsaleClient.fetch] Error HTTP al consultar {url} con params {params}: {http_err}")
            logging.error(f"Respuesta: {response.text}")
            raise
        return response.json()

    def get_documents_page(self, window: DateWindow, offset: int) -> DocumentPage:
        params = {
            'expand': DOCUMENT_EXPAND,
            'emissiondaterange': window.as_param(),
            'offset': offset,
            'limit': self.page_size,
        }
        data = self.fetch("documents.json", params=params)
        return DocumentPage(offset=offset, count=data.get('count') or 0, items=data.get('items') or [])

    def iter_document_pages(self, window: DateWindow, start_offset: int = 0) -> Iterator[DocumentPage]:
        """Recorre documents.json página a página hasta recibir una página sin items.

        El 'count' de la primera página sólo sirve para loguear progreso; el corte
        lo decide exclusivamente la página vacía.
        """
        offset = start_offset
        first_count: Optional[int] = None
        seen = 0

        while True:
            page = self.get_documents_page(window, offset)
            if first_count is None:
                first_count = page.count
                logging.info(f"📋 Total de documentos disponibles: {first_count}")

            if not page.items:
                logging.info("ℹ️ No se encontraron más documentos (items vacío). Deteniendo paginación.")
                if seen + start_offset < first_count:
                    logging.warning(
                        f"⚠️ Paginación terminó en offset {offset} con {seen + start_offset} de "
                        f"{first_count} documentos informados por Bsale"
                    )
                break

            seen += len(page.items)
            yield page
            offset += self.page_size
            if self.pause:
                time.sleep(self.pause)

    def get_variant(self, variant_id: int) -> Dict[str, Any]:
        return self.fetch(f"variants/{variant_id}.json", params={'expand': VARIANT_EXPAND})

    def get_variant_costs(self, variant_id: int) -> Dict[str, Any]:
        return self.fetch(f"variants/{variant_id}/costs.json")
