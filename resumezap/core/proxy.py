import base64
import binascii
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from resumezap.core.errors import AIResponseError, InvalidRequestError
from resumezap.core.logger import get_logger
from resumezap.core.prompting import build_prompts
from resumezap.schemas import (
    REQUEST_TYPES,
    TONES,
    AIRequest,
    CoverLetterResult,
    ResumeAnalysisResult,
    SkillGapResult,
)
from resumezap.services import file_parser
from resumezap.services.llm import claude_messages, extract_json_strict

logger = get_logger(__name__)

RESULT_MODELS = {
    "resume_analysis": ResumeAnalysisResult,
    "cover_letter": CoverLetterResult,
    "skill_gap": SkillGapResult,
}


def _blank(s: Optional[str]) -> bool:
    return not (s or "").strip()


def validate_request(req: AIRequest) -> None:
    if _blank(req.type) or _blank(req.job_posting):
        raise InvalidRequestError("Missing required fields")
    if _blank(req.resume_content) and req.resume_file is None:
        raise InvalidRequestError("Missing required fields")
    if not _blank(req.resume_content) and req.resume_file is not None:
        raise InvalidRequestError("Send either resume content or a resume file, not both")
    if req.type not in REQUEST_TYPES:
        raise InvalidRequestError("Invalid request type")

    if req.type == "cover_letter":
        if _blank(req.company_name) or _blank(req.job_title):
            raise InvalidRequestError("Missing required fields")
        if req.tone is not None and req.tone not in TONES:
            raise InvalidRequestError("Invalid cover letter tone")


def _decode_attachment(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidRequestError("Invalid resume file encoding")


def resolve_resume(req: AIRequest) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    """
    Work out how the resume reaches the model.

    Returns (resume_text, document_blocks). PDFs are forwarded as a base64
    document block and resume_text is None; TXT and DOCX are turned into
    text here because the Messages API only takes PDF documents.
    """
    if req.resume_file is None:
        return req.resume_content.strip(), []

    f = req.resume_file
    media_type = file_parser.media_type_for(f.filename, f.media_type)
    raw = _decode_attachment(f.data)

    if media_type == file_parser.PDF_TYPE:
        block = {
            "type": "document",
            "source": {"type": "base64", "media_type": media_type, "data": f.data},
        }
        return None, [block]

    if media_type == file_parser.DOCX_TYPE:
        parsed = file_parser.parse_docx(raw, f.filename)
        if not parsed.success:
            raise InvalidRequestError(parsed.error)
        return parsed.text, []

    text = file_parser.clean_text(file_parser.decode_text(raw))
    if not text:
        raise InvalidRequestError("Text file appears to be empty.")
    return text, []


def build_user_content(req: AIRequest) -> Tuple[str, List[Dict[str, Any]]]:
    resume_text, documents = resolve_resume(req)
    system, user = build_prompts(req, resume_text)
    return system, documents + [{"type": "text", "text": user}]


def normalize_result(request_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    model = RESULT_MODELS[request_type]
    try:
        result = model.model_validate(payload)
    except ValidationError as e:
        logger.error("Invalid %s response structure: %s", request_type, e)
        raise AIResponseError("Invalid response format from AI service")
    return result.model_dump(by_alias=True)


def run_ai_request(req: AIRequest) -> Dict[str, Any]:
    validate_request(req)
    logger.info("Processing %s request", req.type)

    system, content = build_user_content(req)
    text = claude_messages(system, content)
    data = normalize_result(req.type, extract_json_strict(text))

    logger.info("Successfully processed %s request", req.type)
    return data
