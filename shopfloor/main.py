from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from shopfloor.api.routes import checklists, cutlists, dashboard, jobs, materials, realtime, recuts
from shopfloor.config import get_settings
from shopfloor.core.exceptions import cutting_exception_handler, global_exception_handler, http_exception_handler, request_validation_exception_handler
from shopfloor.core.lifespan import lifespan
from shopfloor.core.middleware import RequestLoggingMiddleware
from shopfloor.cutting.errors import CuttingError

settings = get_settings()

app = FastAPI(title="Shopfloor cutting tracker", lifespan=lifespan)

app.add_middleware(CORSMiddleware, allow_origins=settings.allowed_origins, allow_credentials=True, allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"], allow_headers=["content-type", "x-request-id"], expose_headers=["x-request-id"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(CuttingError, cutting_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok"}


app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(cutlists.router, prefix="/api/cutlists", tags=["cutlists"])
app.include_router(materials.router, prefix="/api/materials", tags=["materials"])
app.include_router(recuts.router, prefix="/api/recuts", tags=["recuts"])
app.include_router(checklists.router, prefix="/api/checklists", tags=["checklists"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(realtime.router, tags=["realtime"])
