"""
FormLogic API

Stateless conditional form logic and validation service.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import formlogic
from formlogic.config import get_settings
from formlogic.exceptions import FormLogicError, InvariantViolation
from formlogic.logging_config import configure_logging
from formlogic.packs import FormPackLoader

from api.routes import evaluate, forms

logger = logging.getLogger("formlogic.api")

settings = get_settings()

# Form pack loader and cache
loader = FormPackLoader(strict_version=False)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load form packs on startup."""
    configure_logging(settings)
    logger.info("Loading form packs from %s", settings.packs_dir)

    loaded = loader.load_directory(settings.packs_dir)
    logger.info("Loaded %d form packs", len(loaded))

    # Share loader with routes
    forms.set_loader(loader)

    yield

    logger.info("Shutting down")


# Create app
app = FastAPI(
    title="FormLogic API",
    description="""
**Conditional form logic and validation engine.**

FormLogic computes which fields of a form are visible and required for a
snapshot of values, validates visible fields, and propagates value changes
(clearing fields that become hidden).

## Quick Start

1. `GET /forms` - See loaded form packs
2. `POST /forms/{id}/state` - Compute field visibility and required flags
3. `POST /forms/{id}/validate` - Validate a submission
    """,
    version=formlogic.__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(forms.router)
app.include_router(evaluate.router)


@app.exception_handler(FormLogicError)
async def formlogic_error_handler(request: Request, exc: FormLogicError):
    """Translate engine errors that escape a route into JSON."""
    status_code = 400 if isinstance(exc, InvariantViolation) else 500
    logger.error(
        "Request failed: %s", exc,
        extra={"error_code": exc.code},
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.get("/health", tags=["Health"])
async def health():
    """Health check endpoint."""
    return {
        "healthy": True,
        "version": formlogic.__version__,
        "forms_loaded": len(loader.list_forms()),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
