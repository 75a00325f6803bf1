"""
Configuración centralizada de timeouts y pausas para llamadas externas.
"""

# Timeouts de TusFacturas (segundos)
TUSFACTURAS_SUBMIT_TIMEOUT = 30.0   # Alta de comprobante (facturacion/nuevo)
TUSFACTURAS_QUERY_TIMEOUT = 10.0    # Consultas (facturacion/buscar)

# Pausa entre envíos del lote (segundos) para respetar el rate limit del proveedor
SUBMISSION_PACING_DELAY = 1.2

# Timeouts de JSONBin.io (segundos)
JSONBIN_TIMEOUT = 8.0

# Lock de lote
BATCH_LOCK_TTL_SECONDS = 120        # Se renueva antes de cada template; si el proceso muere, expira en Redis
