from io import BytesIO

from docx import Document

from resumezap.services import file_parser
from resumezap.services.pdf import render_pdf


RESUME_TEXT = "\n".join(
    ["Jane Doe", "SUMMARY", "Backend engineer building Python services on AWS."]
    + ["EXPERIENCE", "Acme Corp | Senior Engineer | 2019 - Present"]
    + [f"- Shipped feature {i} that cut latency by {i * 3} percent" for i in range(1, 25)]
)


def make_docx(paragraphs, table_rows=()):
    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    if table_rows:
        table = doc.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, row in enumerate(table_rows):
            for c, value in enumerate(row):
                table.cell(r, c).text = value
    buf = BytesIO()
    doc.save(buf)
    return buf.getvalue()


def test_clean_text_collapses_whitespace_and_breaks_paragraphs():
    raw = "Jane   Doe\r\n\r\nLed the team.\nBuilt things\t here"
    assert file_parser.clean_text(raw) == "Jane Doe\nLed the team.\n\nBuilt things here"


def test_validate_file_type():
    assert file_parser.validate_file_type("resume.pdf", None) == (True, None)
    assert file_parser.validate_file_type("resume", "text/plain") == (True, None)
    ok, error = file_parser.validate_file_type("photo.png", "image/png")
    assert not ok
    assert error == "Please upload a PDF, DOCX, or TXT file."


def test_media_type_falls_back_to_extension():
    assert file_parser.media_type_for("cv.DOCX", "application/octet-stream") == file_parser.DOCX_TYPE
    assert file_parser.media_type_for("cv.pdf", None) == file_parser.PDF_TYPE
    assert file_parser.media_type_for("cv", None) == file_parser.TXT_TYPE


def test_parse_txt():
    data = ("Experienced engineer. " * 80).encode("utf-8")
    result = file_parser.parse_file("resume.txt", "text/plain", data)
    assert result.success
    assert result.metadata.file_type == "TXT"
    assert result.metadata.word_count == 160
    assert result.metadata.file_size == len(data)


def test_parse_txt_falls_back_to_cp1252():
    data = b"Caf\xe9 manager with \x93quoted\x94 wins. " * 40
    result = file_parser.parse_file("resume.txt", None, data)
    assert result.success
    assert "Café" in result.text
    assert "“quoted”" in result.text


def test_parse_rejects_small_and_large_files():
    small = file_parser.parse_file("resume.txt", "text/plain", b"too short")
    assert not small.success
    assert small.error == "File is too small. Please ensure your file contains resume content."

    large = file_parser.parse_file("resume.txt", "text/plain", b"a" * (10 * 1024 * 1024 + 1))
    assert not large.success
    assert large.error == "File size exceeds 10MB limit. Please use a smaller file."


def test_parse_rejects_unsupported_format():
    result = file_parser.parse_file("photo.png", "image/png", b"\x89PNG" + b"0" * 2048)
    assert not result.success
    assert result.error == "Unsupported file format. Please upload a PDF, DOCX, or TXT file."


def test_parse_docx_includes_tables():
    data = make_docx(
        ["Jane Doe", "Backend engineer.", "", "Built APIs"],
        table_rows=[("Python", "Django"), ("AWS", "")],
    )
    result = file_parser.parse_file("resume.docx", file_parser.DOCX_TYPE, data)
    assert result.success
    assert result.metadata.file_type == "DOCX"
    assert "Jane Doe" in result.text
    assert "Python | Django" in result.text
    assert "\nAWS" in result.text


def test_parse_empty_docx():
    result = file_parser.parse_file("resume.docx", None, make_docx([""]))
    assert not result.success
    assert result.error == "DOCX file appears to be empty or contains no readable text."


def test_parse_corrupted_docx():
    result = file_parser.parse_file("resume.docx", None, b"PK\x03\x04" + b"\x00" * 2048)
    assert not result.success
    assert result.error == "Invalid or corrupted DOCX file. Please try a different file."


def test_parse_pdf_extracts_text():
    data = render_pdf(RESUME_TEXT).getvalue()
    result = file_parser.parse_pdf(data, "resume.pdf")
    assert result.success
    assert result.metadata.file_type.startswith("PDF")
    assert result.metadata.page_count == 1
    assert "Jane" in result.text
    assert "Acme" in result.text


def test_parse_garbage_pdf_fails_cleanly():
    result = file_parser.parse_pdf(b"this is not a pdf at all" * 100, "resume.pdf")
    assert not result.success
    assert result.error


def test_file_type_display_name():
    assert file_parser.file_type_display_name("cv.pdf", None) == "PDF"
    assert file_parser.file_type_display_name("cv", file_parser.DOCX_TYPE) == "DOCX"
    assert file_parser.file_type_display_name("cv.rtf", "application/rtf") == "Unknown"
