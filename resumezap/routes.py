from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from resumezap.core import ai_service, policy
from resumezap.core.errors import InvalidRequestError, ResumeZapError
from resumezap.core.logger import get_logger
from resumezap.core.proxy import run_ai_request
from resumezap.db.database import get_db
from resumezap.db.models import UserRecord
from resumezap.schemas import (
    AccountDeletion,
    AIRequest,
    ApplicationCreate,
    ApplicationOut,
    ApplicationStats,
    ApplicationUpdate,
    CoverLetterCreate,
    CoverLetterOut,
    CoverLetterResponse,
    CoverLetterStats,
    CoverLetterUpdate,
    ExportFormat,
    ParseResult,
    PlanUpgrade,
    ProxyResponse,
    ResumeAnalysisResponse,
    ResumeCreate,
    ResumeFile,
    ResumeOut,
    ResumeUpdate,
    SkillAnalysisCreate,
    SkillAnalysisOut,
    SkillAnalysisStats,
    SkillGapResponse,
    SupportTicketCreate,
    SupportTicketOut,
    UsageOut,
    UserCreate,
    UserOut,
    UserUpdate,
)
from resumezap.services import file_parser
from resumezap.services.batch import build_data_export
from resumezap.services.export import export_document, slugify
from resumezap.store import applications, cover_letters, resumes, skill_analyses, support, users

logger = get_logger(__name__)

router = APIRouter()
ai_router = APIRouter(prefix="/ai", tags=["ai"])
files_router = APIRouter(prefix="/files", tags=["files"])
users_router = APIRouter(tags=["users"])
resumes_router = APIRouter(prefix="/resumes", tags=["resumes"])
applications_router = APIRouter(prefix="/applications", tags=["applications"])
cover_letters_router = APIRouter(prefix="/cover-letters", tags=["cover_letters"])
skill_analyses_router = APIRouter(prefix="/skill-analyses", tags=["skill_analyses"])
support_router = APIRouter(prefix="/support-tickets", tags=["support"])


def current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> UserRecord:
    return users.require_user(db, x_user_id)


def attachment(buf, media_type: str, filename: str) -> StreamingResponse:
    filename = filename.replace("\n", "").replace("\r", "").replace('"', "")
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(buf, media_type=media_type, headers=headers)


@router.get("/health")
def health():
    return {"ok": True}


# =========================
# AI
# =========================
def _proxy_error(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    body = ProxyResponse(success=False, error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@ai_router.post("/proxy")
async def ai_proxy(request: Request):
    try:
        body = await request.json()
        req = AIRequest.model_validate(body)
    except (ValueError, ValidationError):
        return _proxy_error(400, "Invalid request format")

    try:
        data = await run_in_threadpool(run_ai_request, req)
    except ResumeZapError as e:
        logger.warning("AI proxy request failed (%d): %s", e.status_code, e.message)
        return _proxy_error(e.status_code, e.message)
    except Exception as e:
        logger.exception("Unexpected AI proxy failure")
        return _proxy_error(500, "Internal server error", str(e))

    return ProxyResponse(success=True, data=data).model_dump(exclude_none=True)


def _upload(resume_file: Optional[UploadFile]) -> Optional[ResumeFile]:
    if resume_file is None or not resume_file.filename:
        return None
    data = resume_file.file.read()
    return ai_service.resume_file_from_upload(resume_file.filename, resume_file.content_type, data)


def _resume_snapshot(resume_content: str, upload: Optional[ResumeFile], raw: Optional[UploadFile]) -> str:
    if upload is None:
        return (resume_content or "").strip()
    # best effort: keep the extracted text next to the saved result
    raw.file.seek(0)
    parsed = file_parser.parse_file(raw.filename, raw.content_type, raw.file.read())
    return parsed.text if parsed.success else f"[{upload.filename}]"


def _run_ai(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except ResumeZapError:
        raise
    except Exception as e:
        logger.exception("AI request failed")
        raise HTTPException(status_code=500, detail=str(e))


@ai_router.post("/resume-analysis", response_model=ResumeAnalysisResponse)
def resume_analysis(
    job_posting: str = Form(""),
    resume_content: str = Form(""),
    title: Optional[str] = Form(None),
    save: bool = Form(True),
    resume_file: Optional[UploadFile] = File(None),
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    users.check_usage(db, user, "resume_tailoring")
    upload = _upload(resume_file)
    result = _run_ai(ai_service.analyze_resume, resume_content, job_posting, resume_file=upload)
    users.record_usage(db, user, "resume_tailoring")

    saved = None
    if save:
        saved = resumes.create_resume(
            db,
            user.id,
            ResumeCreate(
                title=(title or "").strip() or f"Tailored resume {date.today().isoformat()}",
                content=result.tailored_resume,
                original_content=_resume_snapshot(resume_content, upload, resume_file),
                job_posting=job_posting,
                match_score=result.match_score,
            ),
        )
    return ResumeAnalysisResponse(
        result=result, resume=ResumeOut.model_validate(saved) if saved is not None else None
    )


@ai_router.post("/cover-letter", response_model=CoverLetterResponse)
def cover_letter(
    job_posting: str = Form(""),
    company_name: str = Form(""),
    job_title: str = Form(""),
    tone: str = Form("professional"),
    resume_content: str = Form(""),
    hiring_manager: Optional[str] = Form(None),
    personal_experience: Optional[str] = Form(None),
    save: bool = Form(True),
    resume_file: Optional[UploadFile] = File(None),
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    users.check_usage(db, user, "cover_letters")
    upload = _upload(resume_file)
    result = _run_ai(
        ai_service.generate_cover_letter,
        resume_content,
        job_posting,
        company_name,
        job_title,
        tone=tone,
        resume_file=upload,
        hiring_manager=hiring_manager,
        personal_experience=personal_experience,
    )
    users.record_usage(db, user, "cover_letters")

    saved = None
    if save:
        saved = cover_letters.create_cover_letter(
            db,
            user.id,
            CoverLetterCreate(
                title=f"{company_name.strip()} - {job_title.strip()}",
                content=result.cover_letter,
                company_name=company_name,
                job_title=job_title,
                tone=tone,
                job_posting=job_posting,
                resume_content_snapshot=_resume_snapshot(resume_content, upload, resume_file),
                customizations=result.customizations,
                key_strengths=result.key_strengths,
                call_to_action=result.call_to_action,
            ),
        )
    return CoverLetterResponse(
        result=result, cover_letter=CoverLetterOut.model_validate(saved) if saved is not None else None
    )


@ai_router.post("/skill-gap", response_model=SkillGapResponse)
def skill_gap(
    job_posting: str = Form(""),
    resume_content: str = Form(""),
    resume_id: Optional[str] = Form(None),
    save: bool = Form(True),
    resume_file: Optional[UploadFile] = File(None),
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    if save and resume_id:
        resumes.get_resume(db, user.id, resume_id)
    users.check_usage(db, user, "skill_analyses")
    upload = _upload(resume_file)
    result = _run_ai(ai_service.analyze_skill_gaps, resume_content, job_posting, resume_file=upload)
    users.record_usage(db, user, "skill_analyses")

    saved = None
    gaps = skill_analyses.skill_gaps_from_report(result)
    if save and gaps:
        saved = skill_analyses.create_skill_analysis(
            db,
            user.id,
            SkillAnalysisCreate(
                resume_content=_resume_snapshot(resume_content, upload, resume_file),
                job_posting=job_posting,
                skill_gaps=gaps,
                resume_id=resume_id,
                overall_summary=skill_analyses.overall_summary_from_report(result),
            ),
        )
    elif save:
        logger.info("Skill gap report had no skills; nothing saved")
    return SkillGapResponse(
        result=result, analysis=SkillAnalysisOut.model_validate(saved) if saved is not None else None
    )


@files_router.post("/parse", response_model=ParseResult)
def parse_upload(file: UploadFile = File(...)):
    return file_parser.parse_file(file.filename or "", file.content_type, file.file.read())


# =========================
# Users
# =========================
@users_router.post("/users", response_model=UserOut, status_code=201)
def create_user(req: UserCreate, db: Session = Depends(get_db)):
    return users.create_user(db, req.email, req.name)


@users_router.get("/me", response_model=UserOut)
def me(user: UserRecord = Depends(current_user)):
    return user


@users_router.patch("/me", response_model=UserOut)
def update_me(req: UserUpdate, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return users.update_profile(db, user, name=req.name, profile_picture_url=req.profile_picture_url)


@users_router.post("/me/plan", response_model=UserOut)
def upgrade(req: PlanUpgrade, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return users.upgrade_plan(db, user, req.plan)


@users_router.get("/me/usage", response_model=UsageOut)
def usage(user: UserRecord = Depends(current_user)):
    return users.usage_summary(user)


@users_router.delete("/me", status_code=204)
def delete_me(req: AccountDeletion, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    if req.confirm != "DELETE":
        raise InvalidRequestError('Type "DELETE" to confirm account deletion')
    users.delete_user(db, user)


@users_router.get("/me/export")
def export_my_data(user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    zip_buf = build_data_export(db, user)
    filename = f"resumezap_export_{date.today().isoformat()}.zip"
    return attachment(zip_buf, "application/zip", filename)


# =========================
# Resumes
# =========================
@resumes_router.post("", response_model=ResumeOut, status_code=201)
def create_resume(req: ResumeCreate, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return resumes.create_resume(db, user.id, req)


@resumes_router.get("", response_model=List[ResumeOut])
def list_resumes(
    search: Optional[str] = None,
    score: Optional[str] = Query(None, pattern="^(all|high|medium|low)$"),
    sort: str = Query("date", pattern="^(date|score|title)$"),
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    return resumes.list_resumes(db, user.id, search=search, score=score, sort=sort)


@resumes_router.get("/{resume_id}", response_model=ResumeOut)
def get_resume(resume_id: str, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return resumes.get_resume(db, user.id, resume_id)


@resumes_router.patch("/{resume_id}", response_model=ResumeOut)
def update_resume(
    resume_id: str,
    req: ResumeUpdate,
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    return resumes.update_resume(db, user.id, resume_id, req)


@resumes_router.delete("/{resume_id}", status_code=204)
def delete_resume(resume_id: str, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    resumes.delete_resume(db, user.id, resume_id)


@resumes_router.get("/{resume_id}/export")
def export_resume(
    resume_id: str,
    format: ExportFormat = "pdf",
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    policy.ensure_export_allowed(user.plan, format)
    resume = resumes.get_resume(db, user.id, resume_id)
    buf, media_type, filename = export_document(resume.content, format, slugify(resume.title, "resume"))
    return attachment(buf, media_type, filename)


# =========================
# Applications
# =========================
@applications_router.post("", response_model=ApplicationOut, status_code=201)
def create_application(
    req: ApplicationCreate, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)
):
    return applications.create_application(db, user.id, req)


@applications_router.get("", response_model=List[ApplicationOut])
def list_applications(
    search: Optional[str] = None,
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    if search:
        return applications.search_applications(db, user.id, search)
    return applications.list_applications(db, user.id)


@applications_router.get("/stats", response_model=ApplicationStats)
def application_stats(user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return applications.application_stats(db, user.id)


@applications_router.get("/{application_id}", response_model=ApplicationOut)
def get_application(application_id: str, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return applications.get_application(db, user.id, application_id)


@applications_router.patch("/{application_id}", response_model=ApplicationOut)
def update_application(
    application_id: str,
    req: ApplicationUpdate,
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    return applications.update_application(db, user.id, application_id, req)


@applications_router.delete("/{application_id}", status_code=204)
def delete_application(
    application_id: str, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)
):
    applications.delete_application(db, user.id, application_id)


# =========================
# Cover letters
# =========================
@cover_letters_router.post("", response_model=CoverLetterOut, status_code=201)
def create_cover_letter(
    req: CoverLetterCreate, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)
):
    return cover_letters.create_cover_letter(db, user.id, req)


@cover_letters_router.get("", response_model=List[CoverLetterOut])
def list_cover_letters(
    search: Optional[str] = None,
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    if search:
        return cover_letters.search_cover_letters(db, user.id, search)
    return cover_letters.list_cover_letters(db, user.id)


@cover_letters_router.get("/stats", response_model=CoverLetterStats)
def cover_letter_stats(user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return cover_letters.cover_letter_stats(db, user.id)


@cover_letters_router.get("/{letter_id}", response_model=CoverLetterOut)
def get_cover_letter(letter_id: str, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return cover_letters.get_cover_letter(db, user.id, letter_id)


@cover_letters_router.patch("/{letter_id}", response_model=CoverLetterOut)
def update_cover_letter(
    letter_id: str,
    req: CoverLetterUpdate,
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    return cover_letters.update_cover_letter(db, user.id, letter_id, req)


@cover_letters_router.delete("/{letter_id}", status_code=204)
def delete_cover_letter(letter_id: str, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    cover_letters.delete_cover_letter(db, user.id, letter_id)


@cover_letters_router.get("/{letter_id}/export")
def export_cover_letter(
    letter_id: str,
    format: ExportFormat = "pdf",
    user: UserRecord = Depends(current_user),
    db: Session = Depends(get_db),
):
    policy.ensure_export_allowed(user.plan, format)
    letter = cover_letters.get_cover_letter(db, user.id, letter_id)
    buf, media_type, filename = export_document(
        letter.content, format, slugify(letter.title, "cover_letter"), name_line=False
    )
    return attachment(buf, media_type, filename)


# =========================
# Skill analyses
# =========================
@skill_analyses_router.post("", response_model=SkillAnalysisOut, status_code=201)
def create_skill_analysis(
    req: SkillAnalysisCreate, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)
):
    return skill_analyses.create_skill_analysis(db, user.id, req)


@skill_analyses_router.get("", response_model=List[SkillAnalysisOut])
def list_skill_analyses(user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return skill_analyses.list_skill_analyses(db, user.id)


@skill_analyses_router.get("/stats", response_model=SkillAnalysisStats)
def skill_analysis_stats(user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return skill_analyses.skill_analysis_stats(db, user.id)


@skill_analyses_router.get("/{analysis_id}", response_model=SkillAnalysisOut)
def get_skill_analysis(analysis_id: str, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return skill_analyses.get_skill_analysis(db, user.id, analysis_id)


@skill_analyses_router.delete("/{analysis_id}", status_code=204)
def delete_skill_analysis(
    analysis_id: str, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)
):
    skill_analyses.delete_skill_analysis(db, user.id, analysis_id)


# =========================
# Support
# =========================
@support_router.post("", response_model=SupportTicketOut, status_code=201)
def create_support_ticket(
    req: SupportTicketCreate, user: UserRecord = Depends(current_user), db: Session = Depends(get_db)
):
    return support.create_support_ticket(db, user.id, req)


@support_router.get("", response_model=List[SupportTicketOut])
def list_support_tickets(user: UserRecord = Depends(current_user), db: Session = Depends(get_db)):
    return support.list_support_tickets(db, user.id)


ROUTERS = (
    router,
    ai_router,
    files_router,
    users_router,
    resumes_router,
    applications_router,
    cover_letters_router,
    skill_analyses_router,
    support_router,
)
