import logging
import time
from datetime import datetime, timezone
from functools import lru_cache

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_cors_origins, get_settings
from errors import ErrorKind, QuizGenerationError, public_error
from llm_quiz_generator import QuizGenerator
from models import GenerateBody, QuizResponse

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("quiz.api")

app = FastAPI(title="URL Quiz Generator API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_cors_origins()),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STARTED_AT = time.monotonic()


@lru_cache(maxsize=1)
def get_quiz_generator() -> QuizGenerator:
    return QuizGenerator.from_settings(get_settings())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.on_event("startup")
def on_startup():
    # Fail fast on a missing API key instead of at the first request.
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logger.info("Primary model %s, candidates %s", settings.model, ", ".join(settings.known_models))


@app.exception_handler(QuizGenerationError)
async def quiz_error_handler(request: Request, exc: QuizGenerationError):
    status_code, body = public_error(exc)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request body"))
    logger.info("Rejected request: %s", message)
    status_code, body = public_error(QuizGenerationError(message, kind=ErrorKind.INVALID_INPUT))
    return JSONResponse(status_code=status_code, content=body)


@app.get("/")
def root():
    """API root endpoint with basic information."""
    return {
        "message": "URL Quiz Generator API is running",
        "status": "success",
        "timestamp": _now(),
    }


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "uptime": time.monotonic() - _STARTED_AT,
        "timestamp": _now(),
    }


@app.post("/api/quiz/generate", response_model=QuizResponse)
def generate_quiz_endpoint(body: GenerateBody, generator: QuizGenerator = Depends(get_quiz_generator)):
    """
    Generate a quiz from any web page URL.
    questionAmount is range-checked here and again inside the generator.
    """
    quiz = generator.generate_quiz(body.url, body.questionAmount)
    return QuizResponse(data=quiz, questionCount=len(quiz.questions))


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=get_settings().port)
