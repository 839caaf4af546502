import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import EmptyInput, GenerationError, InvalidState, MissingCredential, PermissionDenied, StudyHubError
from .logging_config import setup_logging
from .settings import settings
from .routers import flashcards
from .routers import mindmap
from .routers import progress
from .routers import speaking
from .routers import write

logger = logging.getLogger(__name__)


app = FastAPI(title="StudyHub API")
app.include_router(progress.router)
app.include_router(flashcards.router)
app.include_router(write.router)
app.include_router(speaking.router)
app.include_router(mindmap.router)


def status_for(err: StudyHubError) -> int:
	# Most specific first: MissingCredential is also a GenerationError
	if isinstance(err, EmptyInput):
		return 400
	if isinstance(err, PermissionDenied):
		return 403
	if isinstance(err, InvalidState):
		return 409
	if isinstance(err, MissingCredential):
		return 503
	if isinstance(err, GenerationError):
		return 502
	return 500


@app.exception_handler(StudyHubError)
async def handle_study_error(request: Request, err: StudyHubError):
	status = status_for(err)
	if status >= 500:
		logger.warning("%s %s failed: %s: %s", request.method, request.url.path, type(err).__name__, err)
	return JSONResponse(status_code=status, content={"detail": err.notice, "error": type(err).__name__})


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


@app.on_event("startup")
async def startup_event():
	setup_logging()
	logger.info(
		"StudyHub ready: %s for %s speakers, model %s via %s",
		settings.target_language,
		settings.native_language,
		settings.gemini_model,
		settings.gemini_provider,
	)
