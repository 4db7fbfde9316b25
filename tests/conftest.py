import io
import zipfile

import docx
import fitz
import pytest

SLIDE_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<p:sld xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
    'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main">'
    "<p:cSld><p:spTree><p:sp><p:txBody>{runs}</p:txBody></p:sp></p:spTree></p:cSld>"
    "</p:sld>"
)


class FakeInferenceClient:
    """Stands in for InferenceClient; records prompts."""

    def __init__(self, response: str | None = None, exc: Exception | None = None) -> None:
        self.response = response
        self.exc = exc
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture
def fake_client_factory():
    return FakeInferenceClient


@pytest.fixture
def make_pdf():
    def _make(pages: list[str]) -> bytes:
        doc = fitz.open()
        for lines in pages:
            page = doc.new_page()
            y = 72
            for line in lines.split("\n"):
                page.insert_text((72, y), line, fontsize=11)
                y += 16
        data = doc.tobytes()
        doc.close()
        return data

    return _make


@pytest.fixture
def make_docx():
    def _make(paragraphs: list[str]) -> bytes:
        document = docx.Document()
        for text in paragraphs:
            document.add_paragraph(text)
        buf = io.BytesIO()
        document.save(buf)
        return buf.getvalue()

    return _make


@pytest.fixture
def make_pptx():
    """Build a minimal PPTX-like archive; entries are written in the given order."""

    def _make(slides: list[tuple[str, list[str]]], extra_entries: dict[str, str] | None = None) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as archive:
            archive.writestr("[Content_Types].xml", "<Types/>")
            for name, texts in slides:
                runs = "".join(
                    f'<a:p><a:r><a:rPr lang="en-US" dirty="0"/><a:t>{t}</a:t></a:r></a:p>' for t in texts
                )
                archive.writestr(name, SLIDE_XML.format(runs=runs))
            for name, content in (extra_entries or {}).items():
                archive.writestr(name, content)
        return buf.getvalue()

    return _make
