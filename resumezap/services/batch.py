import json
import zipfile
from io import BytesIO
from typing import Any, List

from sqlalchemy.orm import Session

from resumezap.core.logger import get_logger
from resumezap.db.models import UserRecord
from resumezap.schemas import (
    ApplicationOut,
    SkillAnalysisOut,
    SupportTicketOut,
    UserOut,
)
from resumezap.services.export import html_to_text, slugify
from resumezap.services.pdf import render_pdf
from resumezap.store import applications, cover_letters, resumes, skill_analyses, support

logger = get_logger(__name__)


def _dump(items: List[Any], model) -> str:
    return json.dumps(
        [model.model_validate(it).model_dump(mode="json") for it in items],
        indent=2,
        ensure_ascii=False,
    )


def build_data_export(db: Session, user: UserRecord) -> BytesIO:
    """Zip everything stored for a user: JSON records plus rendered documents."""
    zip_buf = BytesIO()
    errors = []

    with zipfile.ZipFile(zip_buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("profile.json", UserOut.model_validate(user).model_dump_json(indent=2))
        zf.writestr(
            "applications.json",
            _dump(applications.list_applications(db, user.id), ApplicationOut),
        )
        zf.writestr(
            "support_tickets.json",
            _dump(support.list_support_tickets(db, user.id), SupportTicketOut),
        )
        zf.writestr(
            "skill_analyses.json",
            _dump(skill_analyses.list_skill_analyses(db, user.id), SkillAnalysisOut),
        )

        for idx, resume in enumerate(resumes.list_resumes(db, user.id), start=1):
            base_name = f"resumes/{idx:02d}_{slugify(resume.title, 'resume')}"
            try:
                text = resume.content.strip()
                zf.writestr(f"{base_name}.txt", text)
                zf.writestr(f"{base_name}.pdf", render_pdf(text, title=resume.title).getvalue())
            except Exception as e:
                logger.warning("Export of resume %s failed: %s", resume.id, e)
                errors.append(f"{base_name} -> {e}")

        for idx, letter in enumerate(cover_letters.list_cover_letters(db, user.id), start=1):
            base_name = f"cover_letters/{idx:02d}_{slugify(letter.title, 'cover_letter')}"
            try:
                text = html_to_text(letter.content).strip()
                zf.writestr(f"{base_name}.txt", text)
                pdf = render_pdf(text, title=letter.title, name_line=False)
                zf.writestr(f"{base_name}.pdf", pdf.getvalue())
            except Exception as e:
                logger.warning("Export of cover letter %s failed: %s", letter.id, e)
                errors.append(f"{base_name} -> {e}")

        zf.writestr("errors.txt", "\n".join(errors) if errors else "OK")

    logger.info("Built data export for user %s (%d errors)", user.id, len(errors))
    zip_buf.seek(0)
    return zip_buf
