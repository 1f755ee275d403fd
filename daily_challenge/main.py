# daily_challenge/main.py
import logging
import os
import threading
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from .config import load_settings
from .errors import ClassifiedError, ErrorKind
from .generator import ChallengeGenerator
from .llm import build_client
from .scheduler import assign_difficulty, today
from .schemas import GenerateOptions, GenerationResult, challenge_to_wire, normalize_date
from .store import ChallengeStore, InMemoryChallengeStore, get_or_create_challenge

load_dotenv()
logging.basicConfig(
    level=getattr(logging, (os.getenv("LOG_LEVEL") or "INFO").strip().upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ------------------- APP -------------------
app = FastAPI(
    title="Daily Vim Challenge Generator",
    description="Generates one code-editing challenge per day, with a curated fallback pool.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # narrow to the frontend origin when deployed
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------- SHARED STATE -------------------
# Built on first use, once per process
_lock = threading.Lock()
_generator: Optional[ChallengeGenerator] = None
_store = InMemoryChallengeStore()


def get_generator() -> ChallengeGenerator:
    global _generator
    if _generator is None:
        with _lock:
            if _generator is None:
                settings = load_settings()
                _generator = ChallengeGenerator(settings, client=build_client(settings))
                logger.info(
                    "Challenge generator ready (generation %s, fallback %s)",
                    "enabled" if _generator.is_enabled else "disabled",
                    "enabled" if settings.enable_fallback else "disabled",
                )
    return _generator


def get_store() -> ChallengeStore:
    return _store


def _http_error(e: ClassifiedError) -> HTTPException:
    status = 503 if e.kind == ErrorKind.DISABLED else 502
    return HTTPException(
        status_code=status,
        detail={"kind": e.kind.value, "message": e.raw_message, "retryable": e.retryable},
    )


def _result_to_wire(result: GenerationResult) -> Dict[str, Any]:
    return {
        "challenge": challenge_to_wire(result.challenge),
        "source": result.source.value,
        "prompt_used": result.prompt_used,
        "metadata": result.metadata.model_dump(mode="json"),
    }


# ------------------- ROOT & HEALTH -------------------
@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/docs", status_code=302)


@app.get("/health", response_class=JSONResponse)
def health():
    generator = get_generator()
    report = generator.health_check()
    body = report.model_dump(mode="json")
    body.update(
        {
            "model": generator.settings.model,
            "fallback_enabled": generator.settings.enable_fallback,
            "stats": generator.client.get_stats().model_dump() if generator.client is not None else None,
        }
    )
    return body


# ------------------- CHALLENGES -------------------
def _challenge_for(date: str) -> Dict[str, Any]:
    try:
        challenge = get_or_create_challenge(get_store(), get_generator(), date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ClassifiedError as e:
        raise _http_error(e)
    return challenge_to_wire(challenge)


@app.get("/challenge/today", response_class=JSONResponse)
def challenge_today():
    return _challenge_for(today())


@app.get("/challenge/{date}", response_class=JSONResponse)
def challenge_by_date(date: str):
    return _challenge_for(date)


@app.post("/challenge/generate", response_class=JSONResponse)
def generate_post(body: Optional[dict] = None):
    generator = get_generator()
    # Fresh generation; the store is neither read nor written
    try:
        options = GenerateOptions(**(body or {}))
        result = generator.generate_challenge(
            date=options.date,
            difficulty=options.difficulty,
            retries=options.retries,
            context=options.context,
            language=options.language,
        )
    except ClassifiedError as e:
        raise _http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _result_to_wire(result)


@app.get("/schedule/{date}", response_class=JSONResponse)
def schedule(date: str):
    try:
        iso_date = normalize_date(date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"date": iso_date, "difficulty": assign_difficulty(iso_date).value}


# ------------------- POOL -------------------
@app.get("/pool", response_class=JSONResponse)
def pool():
    generator = get_generator()
    report = generator.pool.validate_pool()
    return {**generator.pool.pool_size(), "validation": report.model_dump()}
