from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest
from pymongo.errors import PyMongoError

from app.core.exceptions import StorageError
from app.models.comprobante import ProviderResponse
from app.models.models import Cliente, NuevoCliente, Template
from app.modules.facturacion.batch_job import FacturacionBatchJob
from app.modules.facturacion.batch_lock import BatchLock
from app.repositories.jsonbin_repository import JsonBinClient, JsonBinClienteRepository, JsonBinTemplateRepository
from app.repositories.memory_repository import MemoryClienteRepository, MemoryTemplateRepository
from app.repositories.mongo_repository import MongoClienteRepository, MongoStore, MongoTemplateRepository

JSONBIN_URL = "https://jsonbin.test/v3"


# -----------------------
# Memoria
# -----------------------

def test_add_cliente_strips_hyphens_and_assigns_next_id():
    repo = MemoryClienteRepository([Cliente(id=4, nombre="ACME", documento="30712345678")])

    cliente, creado = repo.add_cliente(NuevoCliente(nombre="Globex", documento="30-79876543-2", email="g@globex.com"))

    assert creado is True
    assert cliente.id == 5
    assert cliente.documento == "30798765432"
    assert cliente.tipo_documento == "CUIT"
    assert cliente.origen == "manual"
    assert [c.id for c in repo.list_clientes()] == [4, 5]


def test_add_cliente_is_deduplicated_by_documento():
    repo = MemoryClienteRepository([Cliente(id=1, nombre="ACME", documento="30712345678")])

    cliente, creado = repo.add_cliente(NuevoCliente(nombre="Otro nombre", documento="30-71234567-8"))

    assert creado is False
    assert cliente.nombre == "ACME"
    assert len(repo.list_clientes()) == 1


def test_get_cliente_returns_none_when_missing():
    repo = MemoryClienteRepository([Cliente(id=1, nombre="ACME")])

    assert repo.get_cliente(1).nombre == "ACME"
    assert repo.get_cliente(2) is None


def test_memory_templates_are_isolated_copies():
    repo = MemoryTemplateRepository([Template.model_validate({"id": 1, "clienteId": 1, "selected": True})])

    listed = repo.list_templates()
    listed[0].selected = False

    assert repo.list_templates()[0].selected is True


# -----------------------
# JSONBin
# -----------------------

class _FakeJsonBin:
    """Servidor JSONBin mínimo sobre httpx.MockTransport."""

    def __init__(self, bins=None, fail_writes: bool = False, fail_reads: bool = False):
        self.bins = bins or {}
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        bin_id = request.url.path.split("/b/")[1].split("/")[0]
        if request.method == "GET":
            if self.fail_reads:
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, json={"record": self.bins.get(bin_id), "metadata": {"id": bin_id}})
        if self.fail_writes:
            return httpx.Response(500, json={"message": "boom"})
        self.bins[bin_id] = json.loads(request.content)
        return httpx.Response(200, json={"record": self.bins[bin_id]})

    def client(self, api_key: str = "master") -> JsonBinClient:
        return JsonBinClient(api_key=api_key, base_url=JSONBIN_URL, transport=httpx.MockTransport(self))


class _AcceptingProvider:
    def __init__(self):
        self.payloads = []

    def credentials(self):
        return {"apikey": "k", "apitoken": "t", "usertoken": "u"}

    async def submit_invoice(self, payload):
        self.payloads.append(payload)
        return ProviderResponse(error="N", numero=len(self.payloads), cae="123", vencimiento_cae="29/10/2026")


def test_jsonbin_listing_skips_invalid_records():
    server = _FakeJsonBin(bins={"tpl": [
        {"id": 1, "clienteId": 2, "monto": 100, "selected": True, "notas": "campo extra"},
        {"concepto": "sin id"},
    ]})
    repo = JsonBinTemplateRepository(server.client(), "tpl")

    templates = repo.list_templates()

    assert [t.id for t in templates] == [1]
    assert templates[0].cliente_id == 2
    assert server.requests[0].url.path == "/v3/b/tpl/latest"
    assert server.requests[0].headers["X-Master-Key"] == "master"


def test_jsonbin_batch_reconcile_keeps_every_stored_record():
    sin_id = {"concepto": "sin id", "selected": True}
    server = _FakeJsonBin(bins={"tpl": [
        {"id": 1, "clienteId": 1, "monto": 100, "selected": True, "notas": "x"},
        {"id": 2, "monto": "", "selected": False},
        sin_id,
    ]})
    repo = JsonBinTemplateRepository(server.client(), "tpl")
    provider = _AcceptingProvider()
    job = FacturacionBatchJob(
        MemoryClienteRepository([Cliente(id=1, nombre="ACME SA", documento="30712345678")]),
        repo,
        provider,
        lock=BatchLock(),
        punto_venta="6",
        pacing_delay=0,
    )

    report = asyncio.run(job.run())

    assert report.exitosas == 1
    assert report.advertencias == []
    stored = server.bins["tpl"]
    assert [r.get("id") for r in stored] == [1, 2, None]
    assert stored[0] == {"id": 1, "clienteId": 1, "monto": 100, "selected": False, "notas": "x"}
    assert stored[1] == {"id": 2, "monto": "", "selected": False}
    assert stored[2] == sin_id


def test_jsonbin_replace_keeps_invalid_records_in_place():
    server = _FakeJsonBin(bins={"tpl": [
        {"id": 1, "clienteId": 2, "monto": 100, "selected": True},
        {"concepto": "sin id"},
        {"id": 3, "clienteId": 2, "monto": 50, "selected": True},
    ]})
    repo = JsonBinTemplateRepository(server.client(), "tpl")

    templates = [t.model_copy(update={"selected": False}) for t in repo.list_templates()]
    result = repo.replace_templates(templates)

    assert result.is_success()
    stored = server.bins["tpl"]
    assert [r.get("id") for r in stored] == [1, None, 3]
    assert stored[1] == {"concepto": "sin id"}
    assert stored[0]["selected"] is False and stored[2]["selected"] is False


def test_jsonbin_clear_selection_does_not_write_when_read_fails():
    server = _FakeJsonBin(bins={"tpl": [{"id": 1, "clienteId": 2, "monto": 100, "selected": True}]}, fail_reads=True)
    repo = JsonBinTemplateRepository(server.client(), "tpl")

    result = repo.clear_selection([1])

    assert result.is_failure()
    assert result.code == "STORAGE_ERROR"
    assert [r.method for r in server.requests] == ["GET"]
    assert server.bins["tpl"][0]["selected"] is True


def test_jsonbin_replace_does_not_write_stale_cache_when_read_fails():
    server = _FakeJsonBin(bins={"cli": [{"id": 1, "nombre": "ACME", "documento": "30712345678"}]})
    repo = JsonBinClienteRepository(server.client(), "cli")
    clientes = repo.list_clientes()
    server.fail_reads = True

    result = repo.replace_clientes(clientes)

    assert result.is_failure()
    assert result.code == "STORAGE_ERROR"
    assert all(r.method == "GET" for r in server.requests)


def test_jsonbin_add_cliente_keeps_invalid_clients_and_their_ids():
    roto = {"id": 7, "nombre": "Roto", "tipo_documento": 80}
    server = _FakeJsonBin(bins={"cli": [{"id": 1, "nombre": "ACME", "documento": "30712345678"}, roto]})
    repo = JsonBinClienteRepository(server.client(), "cli")

    cliente, creado = repo.add_cliente(NuevoCliente(nombre="Globex", documento="30-79876543-2"))

    assert creado is True
    assert cliente.id == 8
    assert [r["id"] for r in server.bins["cli"]] == [1, 7, 8]
    assert server.bins["cli"][1] == roto


def test_jsonbin_add_cliente_raises_when_read_fails():
    server = _FakeJsonBin(bins={"cli": []}, fail_reads=True)
    repo = JsonBinClienteRepository(server.client(), "cli")

    with pytest.raises(StorageError):
        repo.add_cliente(NuevoCliente(nombre="Globex", documento="30798765432"))

    assert all(r.method == "GET" for r in server.requests)


def test_jsonbin_non_array_record_is_empty_collection():
    server = _FakeJsonBin(bins={"cli": {"no": "es una lista"}})

    assert JsonBinClienteRepository(server.client(), "cli").list_clientes() == []


def test_jsonbin_save_keeps_json_field_names_and_extras():
    server = _FakeJsonBin(bins={"tpl": [{"id": 1, "clienteId": 2, "monto": 100, "selected": True, "notas": "x"}]})
    repo = JsonBinTemplateRepository(server.client(), "tpl")

    templates = repo.list_templates()
    templates[0].selected = False
    result = repo.replace_templates(templates)

    assert result.is_success()
    stored = server.bins["tpl"][0]
    assert stored["clienteId"] == 2
    assert stored["selected"] is False
    assert stored["notas"] == "x"
    assert "cliente_id" not in stored


def test_jsonbin_write_failure_is_reported_as_storage_error():
    server = _FakeJsonBin(bins={"cli": []}, fail_writes=True)
    repo = JsonBinClienteRepository(server.client(), "cli")

    result = repo.replace_clientes([Cliente(id=1, nombre="ACME", documento="30712345678")])

    assert result.is_failure()
    assert result.code == "STORAGE_ERROR"


def test_jsonbin_without_api_key_falls_back_to_memory():
    server = _FakeJsonBin()
    repo = JsonBinClienteRepository(server.client(api_key=""), "cli")

    result = repo.replace_clientes([Cliente(id=1, nombre="ACME")])

    assert result.is_failure()
    assert result.code == "NOT_CONFIGURED"
    assert [c.nombre for c in repo.list_clientes()] == ["ACME"]
    assert server.requests == []


def test_jsonbin_read_error_returns_last_known_state():
    server = _FakeJsonBin(bins={"cli": [{"id": 1, "nombre": "ACME", "documento": 30712345678}]})
    repo = JsonBinClienteRepository(server.client(), "cli")
    assert repo.list_clientes()[0].documento == "30712345678"

    def broken(request):
        return httpx.Response(503, text="unavailable")

    repo._collection.client._transport = httpx.MockTransport(broken)

    assert [c.id for c in repo.list_clientes()] == [1]


# -----------------------
# MongoDB
# -----------------------

class _FakeCollection:
    def __init__(self):
        self.docs = {}
        self.fail_reads = False
        self.writes = 0

    def find_one(self, query):
        if self.fail_reads:
            raise PyMongoError("server selection timeout")
        return self.docs.get(query["_id"])

    def replace_one(self, query, doc, upsert=False):
        self.writes += 1
        self.docs[query["_id"]] = doc


def _mongo_store() -> MongoStore:
    colecciones = _FakeCollection()
    client = {"facturacion_test": SimpleNamespace(colecciones=colecciones)}
    return MongoStore("mongodb://fake", "facturacion_test", client=client)


def test_mongo_collection_roundtrip_is_single_document():
    store = _mongo_store()
    templates = MongoTemplateRepository(store)

    assert templates.list_templates() == []

    result = templates.replace_templates([
        Template.model_validate({"id": 1, "clienteId": 3, "monto": 50, "selected": True}),
        Template.model_validate({"id": 2, "clienteId": 4, "monto": 80}),
    ])

    assert result.is_success()
    doc = store.collection.docs["templates"]
    assert [r["clienteId"] for r in doc["records"]] == [3, 4]
    assert [t.id for t in templates.list_templates()] == [1, 2]


def test_mongo_add_cliente():
    repo = MongoClienteRepository(_mongo_store())

    cliente, creado = repo.add_cliente(NuevoCliente(nombre="ACME", documento="30-71234567-8"))

    assert creado is True
    assert cliente.id == 1
    assert repo.get_cliente(1).documento == "30712345678"


def test_mongo_keeps_invalid_records_on_replace_and_clear_selection():
    store = _mongo_store()
    store.collection.docs["templates"] = {"_id": "templates", "records": [
        {"id": 1, "clienteId": 3, "monto": 50, "selected": True},
        {"concepto": "sin id", "selected": True},
        {"id": 2, "clienteId": 4, "monto": 80, "selected": True},
    ]}
    repo = MongoTemplateRepository(store)

    assert [t.id for t in repo.list_templates()] == [1, 2]
    assert repo.clear_selection([1]).value == 1

    records = store.collection.docs["templates"]["records"]
    assert records[0] == {"id": 1, "clienteId": 3, "monto": 50, "selected": False}
    assert records[1] == {"concepto": "sin id", "selected": True}
    assert records[2]["selected"] is True

    repo.replace_templates(repo.list_templates())
    records = store.collection.docs["templates"]["records"]
    assert [r.get("id") for r in records] == [1, None, 2]


def test_mongo_read_error_does_not_overwrite_collection():
    store = _mongo_store()
    store.collection.docs["templates"] = {"_id": "templates", "records": [{"id": 1, "clienteId": 3, "selected": True}]}
    store.collection.fail_reads = True
    repo = MongoTemplateRepository(store)

    replaced = repo.replace_templates([Template.model_validate({"id": 9, "clienteId": 1})])
    cleared = repo.clear_selection([1])

    assert replaced.code == "STORAGE_ERROR"
    assert cleared.code == "STORAGE_ERROR"
    assert store.collection.writes == 0
