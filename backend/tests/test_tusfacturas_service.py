from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from app.core.exceptions import ProviderError, TransportError
from app.services.tusfacturas_service import TusFacturasService

BASE_URL = "https://tusfacturas.test/api/v2"


def _service(handler) -> TusFacturasService:
    return TusFacturasService(
        api_key="111",
        api_token="tok",
        user_token="usr",
        base_url=BASE_URL + "/",
        transport=httpx.MockTransport(handler),
    )


def test_credentials_block():
    assert _service(lambda r: httpx.Response(200, json={})).credentials() == {
        "apikey": "111",
        "apitoken": "tok",
        "usertoken": "usr",
    }


def test_submit_invoice_accepted():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "error": "N",
            "errores": [],
            "numero": "00006-00000123",
            "cae": 76123456789012,
            "vencimiento_cae": "29/10/2026",
            "comprobante_pdf_url": "https://tusfacturas.test/pdf/123",
            "pdf_url": "https://tusfacturas.test/pdf/123",
        })

    response = asyncio.run(_service(handler).submit_invoice({"apikey": "111", "comprobante": {"total": "121.00"}}))

    assert captured["url"] == f"{BASE_URL}/facturacion/nuevo"
    assert captured["body"]["comprobante"]["total"] == "121.00"
    assert response.has_error is False
    assert response.numero == "00006-00000123"
    assert response.cae == "76123456789012"
    assert response.pdf_url == "https://tusfacturas.test/pdf/123"


def test_submit_invoice_provider_error_exposes_first_message():
    def handler(request):
        return httpx.Response(200, json={
            "error": "S",
            "errores": ["El campo CUIT es inválido", "Falta domicilio"],
        })

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(_service(handler).submit_invoice({}))

    assert exc_info.value.message == "El campo CUIT es inválido"
    assert exc_info.value.details["errores"] == ["El campo CUIT es inválido", "Falta domicilio"]


def test_submit_invoice_provider_error_without_messages():
    def handler(request):
        return httpx.Response(200, json={"error": "S"})

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(_service(handler).submit_invoice({}))

    assert exc_info.value.message == "Error API"


def test_http_error_with_structured_body_is_provider_error():
    def handler(request):
        return httpx.Response(400, json={"error": "S", "errores": ["Token inválido"]})

    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(_service(handler).submit_invoice({}))

    assert exc_info.value.message == "Token inválido"
    assert exc_info.value.details["status_code"] == 400


def test_http_error_without_body_is_transport_error():
    def handler(request):
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_service(handler).submit_invoice({}))

    assert exc_info.value.details["status_code"] == 502


def test_timeout_is_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_service(handler).submit_invoice({}))

    assert "Timeout" in exc_info.value.message


def test_invalid_json_is_transport_error():
    def handler(request):
        return httpx.Response(200, text="<html>mantenimiento</html>")

    with pytest.raises(TransportError):
        asyncio.run(_service(handler).submit_invoice({}))


def test_search_invoices_sends_credentials_and_range():
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"error": "N", "comprobantes": []})

    data = asyncio.run(_service(handler).search_invoices("19/10/2026", "19/10/2026"))

    assert captured["url"] == f"{BASE_URL}/facturacion/buscar"
    assert captured["body"] == {
        "apikey": "111",
        "apitoken": "tok",
        "usertoken": "usr",
        "fecha_desde": "19/10/2026",
        "fecha_hasta": "19/10/2026",
    }
    assert data["comprobantes"] == []
