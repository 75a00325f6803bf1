#!/usr/bin/env python3
import uvicorn
import sys
import os

# Agregar el directorio padre al path para importaciones absolutas
parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, parent_dir)

from app.config.settings import settings

if __name__ == "__main__":
    uvicorn.run(
        "app.api.api:app",   # Usar string de importación en lugar del objeto
        host=settings.API_HOST,
        port=settings.API_PORT,
        workers=1,           # Un solo worker: el lock de lote local es por proceso
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False
    )
