import re
from io import BytesIO
from typing import Tuple

from bs4 import BeautifulSoup, NavigableString
from docx import Document

from resumezap.core.errors import InvalidRequestError
from resumezap.services.pdf import header_key, is_bullet, is_section_header, render_pdf, strip_bullet

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "txt": "text/plain; charset=utf-8",
}

BLOCK_TAGS = {"p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "ul", "ol", "li", "pre"}
HTML_HINT = re.compile(r"<\s*(p|div|br|li|ul|ol|h[1-6]|span|strong|em|b|i)\b[^>]*>", re.IGNORECASE)


def slugify(s: str, fallback: str = "document") -> str:
    s = s.strip().lower()
    s = re.sub(r"[^a-z0-9]+", "_", s)
    s = re.sub(r"_+", "_", s).strip("_")
    return s[:60] or fallback


def looks_like_html(text: str) -> bool:
    return bool(HTML_HINT.search(text or ""))


def html_to_text(html: str) -> str:
    """Flatten rich-text editor HTML into plain text; plain text passes through."""
    if not looks_like_html(html):
        return html or ""

    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    for br in soup.find_all("br"):
        br.replace_with(NavigableString("\n"))
    for li in soup.find_all("li"):
        li.insert(0, NavigableString("- "))
    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_before(NavigableString("\n"))
        if tag.name == "li":
            continue
        # lists end with a line break, paragraphs and headings with a blank line
        tag.insert_after(NavigableString("\n" if tag.name in ("ul", "ol") else "\n\n"))

    text = soup.get_text()
    lines = [re.sub(r"[ \t\u00a0]+", " ", line).strip() for line in text.split("\n")]

    # keep single blank lines between paragraphs
    out = []
    for line in lines:
        if not line and (not out or not out[-1]):
            continue
        out.append(line)
    return "\n".join(out).strip()


def render_txt(text: str) -> BytesIO:
    buf = BytesIO(text.encode("utf-8"))
    buf.seek(0)
    return buf


def render_docx(text: str, title: str = "") -> BytesIO:
    doc = Document()
    if title:
        doc.core_properties.title = title

    for line in text.splitlines():
        s = line.strip()
        if not s:
            continue
        if is_section_header(s):
            doc.add_heading(header_key(s).title(), level=2)
        elif is_bullet(s):
            doc.add_paragraph(strip_bullet(s), style="List Bullet")
        else:
            doc.add_paragraph(s)

    buf = BytesIO()
    doc.save(buf)
    buf.seek(0)
    return buf


def export_document(text: str, fmt: str, base_name: str, name_line: bool = True) -> Tuple[BytesIO, str, str]:
    """Render text to pdf, docx or txt and return (buffer, media_type, filename)."""
    fmt = (fmt or "").lower()
    if fmt not in MEDIA_TYPES:
        raise InvalidRequestError(f"Unsupported export format: {fmt}")

    plain = html_to_text(text)
    if fmt == "pdf":
        buf = render_pdf(plain, title=base_name, name_line=name_line)
    elif fmt == "docx":
        buf = render_docx(plain, title=base_name)
    else:
        buf = render_txt(plain)

    return buf, MEDIA_TYPES[fmt], f"{slugify(base_name)}.{fmt}"
