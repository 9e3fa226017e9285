# app/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import orders as orders_router
from .settings import settings
from .utils.logging import setup_logging

logger = setup_logging(settings.log_level)

app = FastAPI(title="Checkout Intake Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(orders_router.router)


@app.exception_handler(RequestValidationError)
async def _validation_envelope(request: Request, exc: RequestValidationError):
    # keep the {success: false} shape for anything FastAPI rejects itself
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "invalid request", "code": "validation_error"},
    )


@app.get("/")
def root():
    return {"message": "Checkout intake API is running"}
