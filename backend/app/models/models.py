# app/models/models.py

from __future__ import annotations
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from app.utils.number_utils import number_to_str, optional_float, optional_int, safe_float

TRUTHY = {"true", "1", "si", "sí", "yes", "on", "s"}


def _optional_str(value):
    if value is None or isinstance(value, str):
        return value
    return number_to_str(value)


def _loose_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return bool(value)


# -----------------------
# Clientes
# -----------------------
class Cliente(BaseModel):
    """Cliente facturable. Solo lectura para el motor de facturación."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: int
    nombre: str = ""
    documento: str = ""  # CUIT sin guiones
    email: Optional[str] = ""
    domicilio: Optional[str] = None
    provincia: Optional[str] = None
    condicion_iva: Optional[str] = None
    condicion_pago: Optional[str] = None
    tipo_documento: Optional[str] = "CUIT"
    origen: Optional[str] = None

    @field_validator("documento", mode="before")
    @classmethod
    def _documento_str(cls, v):
        return _optional_str(v) or ""

    @field_validator("nombre", mode="before")
    @classmethod
    def _nombre_str(cls, v):
        return _optional_str(v) or ""

    @field_validator("email", "domicilio", "provincia", "condicion_iva", "condicion_pago", mode="before")
    @classmethod
    def _codes_as_str(cls, v):
        return _optional_str(v)


class NuevoCliente(BaseModel):
    """Alta manual de cliente (el id lo asigna el repositorio)."""
    nombre: str
    documento: str = ""
    email: Optional[str] = ""
    domicilio: Optional[str] = None
    provincia: Optional[str] = None
    condicion_iva: Optional[str] = None
    condicion_pago: Optional[str] = None

    @field_validator("documento", "provincia", "condicion_pago", mode="before")
    @classmethod
    def _as_str(cls, v):
        return _optional_str(v)


# -----------------------
# Templates
# -----------------------
class Percepcion(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")
    tipo: Optional[str] = ""
    descripcion: Optional[str] = ""
    importe: float = 0.0

    @field_validator("tipo", "descripcion", mode="before")
    @classmethod
    def _texto(cls, v):
        return _optional_str(v)

    @field_validator("importe", mode="before")
    @classmethod
    def _importe_float(cls, v):
        return safe_float(v)


class TemplateItem(BaseModel):
    """
    Ítem explícito de un template multi-línea. Todos los campos son opcionales:
    un valor vacío o no numérico queda como no informado y hereda del template.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")
    cantidad: Optional[float] = None
    precio: Optional[float] = None
    precio_unitario_sin_iva: Optional[float] = None
    alicuota: Optional[float] = None
    descripcion: Optional[str] = None

    @field_validator("cantidad", "precio", "precio_unitario_sin_iva", "alicuota", mode="before")
    @classmethod
    def _numero(cls, v):
        return optional_float(v)

    @field_validator("descripcion", mode="before")
    @classmethod
    def _descripcion_str(cls, v):
        return _optional_str(v)


class Template(BaseModel):
    """
    Línea de facturación recurrente asociada a un cliente.

    Los campos legacy (monto/precio, cantidad, alicuota, concepto) describen
    un cargo de una sola línea; si `items` trae elementos, éstos mandan.

    Los templates llegan tal como los guardó el formulario, así que los
    importes vacíos o no numéricos no invalidan el registro: quedan en None
    y el template se rechaza individualmente al facturar (total 0 o cliente
    inexistente).
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: int
    cliente_id: Optional[int] = Field(default=None, alias="clienteId")
    concepto: Optional[str] = ""
    monto: Optional[float] = 0.0
    precio: Optional[float] = None
    cantidad: Optional[float] = 1
    alicuota: Optional[float] = 21
    bonificacion_porcentaje: Optional[float] = 0
    condicion_pago: Optional[str] = None
    percepciones: Optional[List[Percepcion]] = Field(default_factory=list)
    items: Optional[List[TemplateItem]] = None
    rubro: Optional[str] = None
    rubro_grupo_contable: Optional[str] = None
    leyenda_gral: Optional[str] = None
    selected: bool = False

    @field_validator("cliente_id", mode="before")
    @classmethod
    def _cliente_id_int(cls, v):
        return optional_int(v)

    @field_validator("monto", "precio", "cantidad", "alicuota", "bonificacion_porcentaje", mode="before")
    @classmethod
    def _numero(cls, v):
        return optional_float(v)

    @field_validator("concepto", "condicion_pago", "rubro", "rubro_grupo_contable", "leyenda_gral", mode="before")
    @classmethod
    def _texto(cls, v):
        return _optional_str(v)

    @field_validator("selected", mode="before")
    @classmethod
    def _selected_bool(cls, v):
        return _loose_bool(v)

    @field_validator("percepciones", mode="before")
    @classmethod
    def _percepciones_list(cls, v):
        if not isinstance(v, list):
            return []
        return [p for p in v if isinstance(p, (dict, Percepcion))]

    @field_validator("items", mode="before")
    @classmethod
    def _items_list(cls, v):
        if not isinstance(v, list):
            return None
        return [it for it in v if isinstance(it, (dict, TemplateItem))]

    def to_storage(self) -> dict:
        """Representación persistible (nombres de campo del JSON, extras incluidos)."""
        return self.model_dump(by_alias=True, exclude_none=True)
