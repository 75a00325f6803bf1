from __future__ import annotations

from datetime import date

import pytest

from app.models.models import Cliente, Template
from app.modules.facturacion.due_date import calcular_vencimiento, resolve_condicion_pago
from app.modules.facturacion.line_items import expand_line_items

HOY = date(2026, 10, 19)


def _template(**overrides) -> Template:
    data = {"id": 1, "clienteId": 10, "concepto": "Abono mensual", "monto": 100, "selected": True}
    data.update(overrides)
    return Template.model_validate(data)


def test_legacy_template_expands_to_single_line():
    items = expand_line_items(_template(cantidad=2, alicuota=10.5))

    assert len(items) == 1
    assert items[0].cantidad == 2
    assert items[0].precio_unitario_sin_iva == 100
    assert items[0].alicuota == 10.5
    assert items[0].descripcion == "Abono mensual"


def test_legacy_template_defaults():
    items = expand_line_items(Template.model_validate({"id": 1, "clienteId": 1, "precio": 55, "cantidad": 0}))

    assert items[0].cantidad == 1
    assert items[0].precio_unitario_sin_iva == 55
    assert items[0].alicuota == 21
    assert items[0].descripcion == "Servicio"


def test_legacy_template_with_null_alicuota_uses_21():
    items = expand_line_items(_template(alicuota=None))

    assert items[0].alicuota == 21


def test_explicit_zero_alicuota_is_kept():
    items = expand_line_items(_template(alicuota=0))

    assert items[0].alicuota == 0


def test_blank_form_values_parse_as_unset():
    template = Template.model_validate({
        "id": 1, "clienteId": "", "monto": "", "cantidad": " ", "alicuota": "", "concepto": 123,
        "items": [{"cantidad": "", "precio": "abc"}, "basura"],
    })

    assert template.cliente_id is None
    assert template.monto is None
    assert template.cantidad is None
    assert template.concepto == "123"
    assert len(template.items) == 1

    items = expand_line_items(template)
    assert items[0].cantidad == 1
    assert items[0].precio_unitario_sin_iva == 0
    assert items[0].alicuota == 21


def test_items_override_legacy_fields():
    template = _template(
        alicuota=10.5,
        items=[
            {"cantidad": 3, "precio": 20, "alicuota": 21, "descripcion": "Hosting"},
            {"precio_unitario_sin_iva": 15},
            {"precio": 5, "alicuota": 0},
        ],
    )

    items = expand_line_items(template)

    assert [(i.cantidad, i.precio_unitario_sin_iva, i.alicuota, i.descripcion) for i in items] == [
        (3, 20, 21, "Hosting"),
        (1, 15, 10.5, "Abono mensual"),
        (1, 5, 0, "Abono mensual"),
    ]


def test_empty_items_list_falls_back_to_legacy():
    items = expand_line_items(_template(items=[]))

    assert len(items) == 1
    assert items[0].precio_unitario_sin_iva == 100


@pytest.mark.parametrize("codigo", [None, "", "0", "-5", "contado", "abc"])
def test_non_numeric_or_non_positive_term_is_cash(codigo):
    assert calcular_vencimiento(HOY, codigo) == HOY


@pytest.mark.parametrize(
    "codigo,expected",
    [
        ("30", date(2026, 11, 18)),
        (30, date(2026, 11, 18)),
        ("15 días", date(2026, 11, 3)),
        ("90", date(2027, 1, 17)),
    ],
)
def test_positive_term_adds_days(codigo, expected):
    assert calcular_vencimiento(HOY, codigo) == expected


def test_condicion_pago_priority():
    cliente = Cliente(id=10, nombre="ACME", documento="30712345678", condicion_pago="60")

    assert resolve_condicion_pago(_template(condicion_pago="15"), cliente) == "15"
    assert resolve_condicion_pago(_template(), cliente) == "60"
    assert resolve_condicion_pago(_template(), Cliente(id=10, nombre="ACME")) == "0"
    assert resolve_condicion_pago(_template(), None) == "0"


def test_numeric_condicion_pago_is_normalized_to_string():
    assert _template(condicion_pago=30).condicion_pago == "30"
