import re
from io import BytesIO
from typing import List

from reportlab.lib.pagesizes import LETTER
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas


SECTION_HEADERS = {
    "SUMMARY", "PROFESSIONAL SUMMARY", "OBJECTIVE",
    "EXPERIENCE", "WORK EXPERIENCE", "PROFESSIONAL EXPERIENCE",
    "EDUCATION", "SKILLS", "TECHNICAL SKILLS", "PROJECTS",
    "CERTIFICATIONS", "AWARDS",
}
SKILL_HEADERS = {"SKILLS", "TECHNICAL SKILLS"}
BULLET_MARKERS = ("•", "-", "*", "–")

# "Jan 2020 - Present", "2019 – 2021"
DATE_RANGE = re.compile(r"\b(19|20)\d{2}\b.*(\b(19|20)\d{2}\b|present|current)", re.IGNORECASE)


def header_key(line: str) -> str:
    return line.strip().rstrip(":").strip().upper()


def is_section_header(line: str) -> bool:
    s = line.strip().rstrip(":").strip()
    if not s or header_key(s) not in SECTION_HEADERS:
        return False
    # "Skills" and "SKILLS" both count, "skills" mid-sentence does not
    return s.isupper() or s.istitle()


def is_bullet(line: str) -> bool:
    return line.lstrip().startswith(BULLET_MARKERS)


def strip_bullet(line: str) -> str:
    return line.lstrip().lstrip("".join(BULLET_MARKERS)).strip()


def is_role_heading(line: str) -> bool:
    s = line.strip()
    return len(s) <= 90 and ("|" in s or bool(DATE_RANGE.search(s)))


def render_pdf(text: str, title: str = "", name_line: bool = True) -> BytesIO:
    """Lay out resume or cover letter text on US Letter pages."""
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=LETTER)
    if title:
        c.setTitle(title)
    width, height = LETTER

    margin = 0.75 * inch
    font_body = "Helvetica"
    font_bold = "Helvetica-Bold"
    body_size = 10.5
    header_size = 12.5
    leading = 13.5

    y = height - margin
    max_width = width - 2 * margin

    # showPage resets the canvas font, so new pages reapply the last one set
    current_font = (font_body, body_size)

    def set_font(font: str, size: float):
        nonlocal current_font
        current_font = (font, size)
        c.setFont(font, size)

    def new_page():
        nonlocal y
        c.showPage()
        c.setFont(*current_font)
        y = height - margin

    def ensure_space(lines_needed: float = 1):
        if y - (leading * lines_needed) <= margin:
            new_page()

    def wrap(s: str, font: str, size: float, avail: float) -> List[str]:
        words = s.split()
        if not words:
            return [""]
        out: List[str] = []
        cur = words[0]
        for w in words[1:]:
            candidate = f"{cur} {w}"
            if c.stringWidth(candidate, font, size) <= avail:
                cur = candidate
            else:
                out.append(cur)
                cur = w
        out.append(cur)
        return out

    def draw_wrapped(s: str, font: str, size: float, x: float, avail: float):
        nonlocal y
        set_font(font, size)
        for part in wrap(s, font, size, avail):
            ensure_space(1)
            c.drawString(x, y, part)
            y -= leading

    def draw_header(s: str):
        nonlocal y
        y -= leading * 0.3
        ensure_space(2)
        set_font(font_bold, header_size)
        c.drawString(margin, y, s)
        y -= leading * 1.1
        c.setLineWidth(0.6)
        c.line(margin, y + 4, width - margin, y + 4)
        y -= leading * 0.5

    def draw_columns(items: List[str]):
        nonlocal y
        gap = 0.4 * inch
        col_w = (max_width - gap) / 2
        columns = [(margin, items[0::2]), (margin + col_w + gap, items[1::2])]

        needed = max(sum(len(wrap(it, font_body, body_size, col_w)) for it in col) for _, col in columns)
        ensure_space(min(needed + 1, 10))

        set_font(font_body, body_size)
        top = y
        lowest = y
        for x, col in columns:
            cy = top
            for it in col:
                for part in wrap(it, font_body, body_size, col_w):
                    if cy - leading <= margin:
                        # column overflow: continue below on a fresh page
                        new_page()
                        top = y
                        cy = top
                    c.drawString(x, cy, part)
                    cy -= leading
            lowest = min(lowest, cy)
        y = lowest - leading * 0.3

    def draw_bullet(s: str):
        nonlocal y
        text_indent = 0.35 * inch
        parts = wrap(strip_bullet(s), font_body, body_size, max_width - text_indent)
        ensure_space(1)
        set_font(font_body, body_size)
        c.drawString(margin + 0.18 * inch, y, "•")
        for n, part in enumerate(parts):
            if n:
                ensure_space(1)
            c.drawString(margin + text_indent, y, part)
            y -= leading

    lines = [ln.rstrip() for ln in text.splitlines()]
    seen_content = False
    i = 0
    while i < len(lines):
        line = lines[i]

        if not line.strip():
            ensure_space(0.5)
            y -= leading * 0.5
            i += 1
            continue

        if is_section_header(line):
            draw_header(header_key(line))
            i += 1
            seen_content = True
            if header_key(line) in SKILL_HEADERS:
                block: List[str] = []
                while i < len(lines) and not is_section_header(lines[i]):
                    if lines[i].strip():
                        block.append(strip_bullet(lines[i]) if is_bullet(lines[i]) else lines[i].strip())
                    i += 1
                if block:
                    draw_columns(block)
            continue

        if is_bullet(line):
            draw_bullet(line)
        elif name_line and not seen_content:
            # name line
            ensure_space(2)
            set_font(font_bold, 14)
            c.drawString(margin, y, line.strip())
            y -= leading * 1.3
        elif is_role_heading(line):
            draw_wrapped(line.strip(), font_bold, body_size, margin, max_width)
        else:
            draw_wrapped(line.strip(), font_body, body_size, margin, max_width)

        seen_content = True
        i += 1

    c.save()
    buf.seek(0)
    return buf
