from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class LineItem(BaseModel):
    """Línea explícita de comprobante (derivada del template, no se persiste)."""
    cantidad: float
    precio_unitario_sin_iva: float
    alicuota: float
    descripcion: str


class PercepcionAplicada(BaseModel):
    tipo: str
    descripcion: str
    importe: float


class TaxBreakdown(BaseModel):
    """Totales del comprobante, todos redondeados a 2 decimales."""
    importe_neto_gravado: float = 0.0
    importe_exento: float = 0.0
    importe_no_gravado: float = 0.0
    importe_iva: float = 0.0
    impuestos_internos: float = 0.0
    bonificacion_val: float = 0.0
    percepciones_total: float = 0.0
    total: float = 0.0
    percepciones: List[PercepcionAplicada] = Field(default_factory=list)


class SubmissionState(str, Enum):
    PENDING = "pending"
    BUILT = "built"
    SUBMITTED = "submitted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class SubmissionResult(BaseModel):
    """Resultado de un template dentro de un lote. No se persiste."""
    model_config = ConfigDict(populate_by_name=True)

    template_id: int = Field(alias="templateId")
    success: bool
    estado: SubmissionState
    cliente: Optional[str] = None
    factura_numero: Optional[Any] = Field(default=None, alias="facturaNumero")
    cae: Optional[str] = None
    vencimiento_cae: Optional[str] = None
    pdf_url: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class BatchReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    total: int
    exitosas: int
    fallidas: int
    detalles: List[SubmissionResult] = Field(default_factory=list)
    advertencias: List[str] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[SubmissionResult], advertencias: List[str] = None) -> "BatchReport":
        exitosas = sum(1 for r in results if r.success)
        return cls(
            total=len(results),
            exitosas=exitosas,
            fallidas=len(results) - exitosas,
            detalles=results,
            advertencias=advertencias or [],
        )

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ProviderResponse(BaseModel):
    """Respuesta de TusFacturas a un alta de comprobante."""
    model_config = ConfigDict(extra="allow")

    error: Optional[str] = "N"
    errores: List[str] = Field(default_factory=list)
    numero: Optional[Any] = None
    cae: Optional[str] = None
    vencimiento_cae: Optional[str] = None
    pdf_url: Optional[str] = None

    @field_validator("errores", mode="before")
    @classmethod
    def _errores_list(cls, v):
        if v is None or v == "":
            return []
        if isinstance(v, list):
            return [str(e) for e in v]
        return [str(v)]

    @field_validator("cae", "vencimiento_cae", "pdf_url", mode="before")
    @classmethod
    def _as_str(cls, v):
        return None if v is None else str(v)

    @property
    def has_error(self) -> bool:
        return (self.error or "").upper() == "S"

    @property
    def first_error(self) -> str:
        return self.errores[0] if self.errores else "Error API"
