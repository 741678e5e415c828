"""
Typed operations on top of the proxy: the three things a user can ask for.

Each takes either resume text or an uploaded file (file wins), checks its
inputs, runs the request through the proxy pipeline and returns the
validated result model.
"""

import base64
from typing import Optional

from resumezap.config import get_settings
from resumezap.core.errors import FileParseError, InvalidRequestError
from resumezap.core.logger import get_logger
from resumezap.core.proxy import run_ai_request
from resumezap.schemas import (
    AIRequest,
    CoverLetterResult,
    ResumeAnalysisResult,
    ResumeFile,
    SkillGapResult,
)
from resumezap.services import file_parser

logger = get_logger(__name__)


def resume_file_from_upload(filename: str, content_type: Optional[str], data: bytes) -> ResumeFile:
    ok, error = file_parser.validate_file_type(filename, content_type)
    if not ok:
        raise FileParseError(error)
    settings = get_settings()
    if len(data) > settings.max_upload_bytes:
        raise FileParseError("File size exceeds 10MB limit. Please use a smaller file.")
    if len(data) < settings.min_upload_bytes:
        raise FileParseError("File is too small. Please ensure your file contains resume content.")

    media_type = file_parser.media_type_for(filename, content_type)
    logger.info("File processed for AI request: %s (%s, %d bytes)", filename, media_type, len(data))
    return ResumeFile(
        data=base64.b64encode(data).decode("ascii"),
        media_type=media_type,
        filename=filename,
    )


def _base_request(
    request_type: str,
    resume_content: str,
    job_posting: str,
    resume_file: Optional[ResumeFile],
) -> AIRequest:
    if not (resume_content or "").strip() and resume_file is None:
        raise InvalidRequestError("Either resume content or resume file is required")

    req = AIRequest(type=request_type, job_posting=(job_posting or "").strip())
    if resume_file is not None:
        req.resume_file = resume_file
    else:
        req.resume_content = resume_content.strip()
    return req


def analyze_resume(
    resume_content: str,
    job_posting: str,
    resume_file: Optional[ResumeFile] = None,
) -> ResumeAnalysisResult:
    logger.info("Starting resume analysis (file=%s)", resume_file is not None)
    req = _base_request("resume_analysis", resume_content, job_posting, resume_file)
    if not req.job_posting:
        raise InvalidRequestError("Job posting is required")
    result = ResumeAnalysisResult.model_validate(run_ai_request(req))
    logger.info("Resume analysis completed with score %d", result.match_score)
    return result


def generate_cover_letter(
    resume_content: str,
    job_posting: str,
    company_name: str,
    job_title: str,
    tone: str = "professional",
    resume_file: Optional[ResumeFile] = None,
    hiring_manager: Optional[str] = None,
    personal_experience: Optional[str] = None,
) -> CoverLetterResult:
    logger.info("Starting cover letter generation")
    req = _base_request("cover_letter", resume_content, job_posting, resume_file)
    if not all((s or "").strip() for s in (job_posting, company_name, job_title)):
        raise InvalidRequestError("Job posting, company name, and job title are required")
    req.company_name = company_name.strip()
    req.job_title = job_title.strip()
    req.tone = tone
    if (hiring_manager or "").strip():
        req.hiring_manager = hiring_manager.strip()
    if (personal_experience or "").strip():
        req.personal_experience = personal_experience.strip()

    result = CoverLetterResult.model_validate(run_ai_request(req))
    logger.info("Cover letter generation completed successfully")
    return result


def analyze_skill_gaps(
    resume_content: str,
    job_posting: str,
    resume_file: Optional[ResumeFile] = None,
) -> SkillGapResult:
    logger.info("Starting skill gap analysis")
    req = _base_request("skill_gap", resume_content, job_posting, resume_file)
    if not req.job_posting:
        raise InvalidRequestError("Job posting is required")
    result = SkillGapResult.model_validate(run_ai_request(req))
    logger.info("Skill gap analysis completed successfully")
    return result
