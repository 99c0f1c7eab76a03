"""REST API routes for accounts, lessons, progress and billing."""

import functools

import structlog
from fastapi import APIRouter, Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from tutorx.auth.accounts import AccountService, CredentialStore
from tutorx.billing.entitlements import SimulatedApprover
from tutorx.config import get_settings
from tutorx.errors import (
    AuthFailure,
    EntitlementDenied,
    FeatureLocked,
    GenerationFailed,
    InvalidRequest,
    NoActiveLesson,
    PersistenceError,
    QuotaExceeded,
    TutorXError,
)
from tutorx.models.lesson import ChatTurn
from tutorx.models.profile import DifficultyLevel, SubscriptionTier
from tutorx.service import TutorService
from tutorx.storage.profile_store import JsonProfileStore
from tutorx.tutoring.documents import DocumentAnalyzer
from tutorx.tutoring.lesson_generator import LessonGenerator
from tutorx.tutoring.speech import SpeechSynthesizer, audio_to_base64
from tutorx.tutoring.tutor_chat import TutorChat

logger = structlog.get_logger()
router = APIRouter(prefix="/api")
bearer_scheme = HTTPBearer(auto_error=False)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@functools.lru_cache
def get_service() -> TutorService:
    """Build the service from settings once per process."""
    settings = get_settings()
    store = JsonProfileStore(settings.profiles_dir)
    accounts = AccountService(
        store,
        CredentialStore(settings.credentials_dir),
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )
    provider_args = dict(
        api_key=settings.openai_api_key,
        default_model=settings.default_model,
        pro_model=settings.pro_model,
    )
    return TutorService(
        store=store,
        accounts=accounts,
        approver=SimulatedApprover(approve=settings.approve_upgrades),
        lessons=LessonGenerator(**provider_args),
        chat=TutorChat(**provider_args),
        speech=SpeechSynthesizer(
            settings.openai_api_key,
            model=settings.tts_model,
            voices=settings.tts_voices,
            default_voice=settings.default_voice,
        ),
        documents=DocumentAnalyzer(**provider_args),
    )


def get_current_email(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    service: TutorService = Depends(get_service),
) -> str:
    if credentials is None:
        raise AuthFailure("Not authenticated")
    return service.accounts.decode_access_token(credentials.credentials)


# Error mapping: (status code, include upgrade hint)
_ERROR_STATUS: dict[type[TutorXError], tuple[int, bool]] = {
    AuthFailure: (401, False),
    FeatureLocked: (402, True),
    QuotaExceeded: (402, True),
    EntitlementDenied: (402, False),
    InvalidRequest: (422, False),
    NoActiveLesson: (409, False),
    GenerationFailed: (502, False),
    PersistenceError: (503, False),
}


def install_error_handlers(app: FastAPI) -> None:
    """Convert application errors into JSON notices."""

    @app.exception_handler(TutorXError)
    async def _tutorx_error(request: Request, exc: TutorXError) -> JSONResponse:
        status, upgrade = _ERROR_STATUS.get(type(exc), (500, False))
        logger.warning(
            "request_failed", path=request.url.path, error=type(exc).__name__, status=status
        )
        body: dict = {"error": type(exc).__name__, "detail": str(exc)}
        if upgrade:
            body["upgrade_to"] = SubscriptionTier.PREMIUM.value
        return JSONResponse(body, status_code=status)


class RegisterRequest(BaseModel):
    email: str
    password: str
    preferred_level: str = "High School"
    exam_type: str | None = None
    display_name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class LessonRequest(BaseModel):
    topic: str = Field(min_length=1)
    difficulty: DifficultyLevel = DifficultyLevel.BEGINNER


class AskRequest(BaseModel):
    question: str = Field(min_length=1)
    history: list[ChatTurn] = Field(default_factory=list)


class QuizRequest(BaseModel):
    answers: list[str]


class NarrationRequest(BaseModel):
    voice: str | None = None


class UpgradeRequest(BaseModel):
    tier: SubscriptionTier


def _auth_response(profile, token: str) -> dict:
    return {
        "access_token": token,
        "token_type": "bearer",
        "profile": profile.model_dump(mode="json"),
    }


@router.post("/auth/register", status_code=201)
async def register(req: RegisterRequest, service: TutorService = Depends(get_service)) -> dict:
    profile, token = service.register(
        req.email, req.password, req.preferred_level, req.exam_type, req.display_name
    )
    return _auth_response(profile, token)


@router.post("/auth/login")
async def login(req: LoginRequest, service: TutorService = Depends(get_service)) -> dict:
    profile, token = service.login(req.email, req.password)
    return _auth_response(profile, token)


@router.post("/auth/logout")
async def logout(
    email: str = Depends(get_current_email), service: TutorService = Depends(get_service)
) -> dict:
    service.logout(email)
    return {"ok": True}


@router.get("/profile")
async def get_profile(
    email: str = Depends(get_current_email), service: TutorService = Depends(get_service)
) -> dict:
    return service.load_profile(email).model_dump(mode="json")


@router.get("/profile/insights")
async def get_insights(
    email: str = Depends(get_current_email), service: TutorService = Depends(get_service)
) -> dict:
    return service.get_insights(email)


@router.get("/profile/features")
async def get_features(
    email: str = Depends(get_current_email), service: TutorService = Depends(get_service)
) -> dict:
    return service.get_features(email)


@router.post("/lessons")
async def start_lesson(
    req: LessonRequest,
    email: str = Depends(get_current_email),
    service: TutorService = Depends(get_service),
) -> dict:
    lesson = await service.start_lesson(email, req.topic, req.difficulty)
    return lesson.model_dump(mode="json")


@router.post("/lessons/ask")
async def ask_question(
    req: AskRequest,
    email: str = Depends(get_current_email),
    service: TutorService = Depends(get_service),
) -> dict:
    answer, profile = await service.ask_question(email, req.question, req.history)
    return {
        "answer": answer,
        "daily_question_count": profile.daily_question_count,
    }


@router.post("/lessons/quiz")
async def complete_quiz(
    req: QuizRequest,
    email: str = Depends(get_current_email),
    service: TutorService = Depends(get_service),
) -> dict:
    score, profile = service.complete_quiz(email, req.answers)
    return {"score": score, "profile": profile.model_dump(mode="json")}


@router.post("/lessons/mastery")
async def mark_mastery(
    email: str = Depends(get_current_email), service: TutorService = Depends(get_service)
) -> dict:
    return service.mark_mastery(email).model_dump(mode="json")


@router.post("/lessons/narration")
async def narrate_lesson(
    req: NarrationRequest,
    email: str = Depends(get_current_email),
    service: TutorService = Depends(get_service),
) -> dict:
    chunks = await service.narrate_lesson(email, req.voice)
    return {
        "format": "mp3",
        "chunks": [audio_to_base64(chunk) for chunk in chunks],
    }


@router.post("/documents")
async def analyze_document(
    file: UploadFile = File(...),
    email: str = Depends(get_current_email),
    service: TutorService = Depends(get_service),
) -> dict:
    data = await file.read()
    if not data:
        raise InvalidRequest("Uploaded file is empty")
    if len(data) > MAX_UPLOAD_BYTES:
        raise InvalidRequest("Uploaded file exceeds 10 MB")
    analysis, _ = await service.analyze_document(
        email,
        data,
        file.content_type or "application/octet-stream",
        file.filename or "document",
    )
    return {"file_name": file.filename, "analysis": analysis}


@router.post("/billing/upgrade")
async def upgrade(
    req: UpgradeRequest,
    email: str = Depends(get_current_email),
    service: TutorService = Depends(get_service),
) -> dict:
    return (await service.upgrade(email, req.tier)).model_dump(mode="json")


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
