"""
Motor de facturación recurrente: cálculo de Factura A y envío por lotes a TusFacturas.
"""

from .rounding import round2, format_amount
from .line_items import expand_line_items
from .tax_breakdown import compute_tax_breakdown
from .due_date import calcular_vencimiento, resolve_condicion_pago
from .payload_builder import build_invoice_payload
from .batch_submitter import BatchSubmitter
from .reconciler import reconcile_templates, apply_results
from .batch_job import FacturacionBatchJob

__all__ = [
    'round2', 'format_amount', 'expand_line_items', 'compute_tax_breakdown',
    'calcular_vencimiento', 'resolve_condicion_pago', 'build_invoice_payload',
    'BatchSubmitter', 'reconcile_templates', 'apply_results', 'FacturacionBatchJob',
]
