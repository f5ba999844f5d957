from fastapi import FastAPI, UploadFile, File, Form
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette import status
from typing import Optional
import asyncio
import json
import logging

# Import our modules
from config import config
from exceptions import InvalidInput, ModelLoadFailure
from pipeline import StylePipeline, create_pipeline
from process import load_image

# Logging setup
logging.basicConfig(level=config.log_level, format=config.log_format)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=config.title,
    description=config.description,
    version=config.version,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global pipeline singleton (shares the models between requests)
_pipeline = None
_warmup_task = None


def get_pipeline() -> StylePipeline:
    """Get global pipeline instance (lazy-init)."""
    global _pipeline
    if _pipeline is None:
        _pipeline = create_pipeline(config)
    return _pipeline


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def parse_preferences(raw: Optional[str]):
    """Style preferences from a JSON list/object or a comma-separated string."""
    if raw is None or not raw.strip():
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return [p.strip() for p in raw.split(",") if p.strip()]
    if isinstance(value, dict):
        value = value.get("style")
    if isinstance(value, str):
        return [value]
    if value is None or isinstance(value, list):
        return value
    raise InvalidInput(f"Unsupported preferences value: {raw}")


def parse_budget(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return config.default_budget
    try:
        return float(raw)
    except ValueError as e:
        raise InvalidInput(f"Budget must be a number, got {raw!r}") from e


async def read_image(image: Optional[UploadFile]):
    """Validate and decode an upload; returns (image, error_response)."""
    if image is None:
        return None, error_response(status.HTTP_400_BAD_REQUEST, "No image uploaded")
    if image.content_type not in config.allowed_content_types:
        return None, error_response(
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            f"Unsupported content-type: {image.content_type}",
        )
    # Read with size guard
    image_bytes = await image.read()
    if len(image_bytes) > config.max_upload_bytes:
        return None, error_response(
            413,
            f"File too large. Max {config.max_upload_mb}MB",
        )
    logger.info(f"Received {image.filename} ({len(image_bytes)} bytes)")
    return load_image(image_bytes), None


async def run_operation(name: str, operation) -> JSONResponse:
    """Run a pipeline call, mapping core errors to HTTP responses."""
    try:
        result = await operation()
        if isinstance(result, JSONResponse):
            return result
        return JSONResponse(content=result)
    except InvalidInput as e:
        logger.warning(f"Invalid input in {name}: {e}")
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except ModelLoadFailure as e:
        logger.error(f"Model unavailable in {name}: {e}")
        return error_response(status.HTTP_503_SERVICE_UNAVAILABLE, str(e))
    except Exception as e:
        logger.exception(f"Error in {name} endpoint: {e}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Internal server error")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc: Exception):
    logger.exception(f"Unhandled server error: {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.on_event("startup")
async def maybe_warmup_models():
    global _warmup_task
    if config.model_warmup_on_startup:
        # Load models in the background to reduce first request latency
        _warmup_task = asyncio.create_task(get_pipeline().model_manager.warmup())


@app.get("/api/health")
async def health_check():
    return {
        "status": "Virtual Try-On AI System is running",
        "version": config.version,
        "models": get_pipeline().model_manager.get_status(),
    }


@app.post("/api/tryon")
async def tryon(
    image: Optional[UploadFile] = File(None),
    clothing_type: Optional[str] = Form("all", alias="clothingType"),
):
    """Detect clothing in the uploaded photo, optionally one type only."""
    async def operation():
        decoded, error = await read_image(image)
        if error is not None:
            return error
        result = await get_pipeline().detect(decoded, clothing_type)
        result["message"] = "Virtual try-on processed successfully"
        return result

    return await run_operation("tryon", operation)


@app.post("/api/suggestions")
async def suggestions(
    image: Optional[UploadFile] = File(None),
    preferences: Optional[str] = Form(None),
    budget: Optional[str] = Form(None),
):
    """Recommend catalog items for the uploaded photo."""
    async def operation():
        decoded, error = await read_image(image)
        if error is not None:
            return error
        return await get_pipeline().suggest(decoded, parse_preferences(preferences), parse_budget(budget))

    return await run_operation("suggestions", operation)


@app.post("/api/analyze")
async def analyze(image: Optional[UploadFile] = File(None)):
    """Body shape and colour analysis of the uploaded photo."""
    async def operation():
        decoded, error = await read_image(image)
        if error is not None:
            return error
        return await get_pipeline().analyze(decoded)

    return await run_operation("analyze", operation)

