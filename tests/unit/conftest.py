"""Shared fixtures: in-memory collaborators and generated Word documents."""

import io
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any

# Keep settings side effects (directories, log files) out of the working tree.
_SANDBOX = Path(tempfile.mkdtemp(prefix="docmerge_tests_"))
os.environ.setdefault("STORAGE_DIR", str(_SANDBOX / "storage"))
os.environ.setdefault("WORK_DIR", str(_SANDBOX / "work"))
os.environ.setdefault("LOG_DIR", str(_SANDBOX / "logs"))

import pytest
from docx import Document
from docx.oxml import OxmlElement
from docx.shared import Inches
from PIL import Image

from docmerge.db.models import FormEntry, FormTemplate, TemplateVariableRecord
from docmerge.interfaces.errors import DuplicateVariableError, SubprocessFailure
from docmerge.interfaces.ocr import BaseOcrEngine
from docmerge.interfaces.repository import BaseTemplateRepository
from docmerge.interfaces.storage import BaseStorage
from docmerge.strategies.template_engine.models import ImportResult, TemplateVariable


# =============================================================================
# Document builders
# =============================================================================


def docx_bytes(*paragraphs: str, header: str | None = None) -> bytes:
    """Build a .docx with one paragraph per argument and an optional header."""
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if header is not None:
        document.sections[0].header.paragraphs[0].text = header
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def split_run_docx(*parts: str, bold: bool = False) -> bytes:
    """Build a .docx whose single paragraph has one run per part."""
    document = Document()
    paragraph = document.add_paragraph()
    for part in parts:
        run = paragraph.add_run(part)
        run.bold = bold
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def multiline_run_docx(*lines: str) -> bytes:
    """Build a .docx whose single run holds ``lines`` separated by line breaks."""
    document = Document()
    run = document.add_paragraph().add_run(lines[0])
    for line in lines[1:]:
        run.add_break()
        run.add_text(line)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def wrapped_run_docx(before: str, wrapped: str, wrapper: str = "w:hyperlink") -> bytes:
    """Build a .docx with a plain run followed by a run inside ``wrapper``."""
    document = Document()
    paragraph = document.add_paragraph(before)
    container = OxmlElement(wrapper)
    run = OxmlElement("w:r")
    t = OxmlElement("w:t")
    t.text = wrapped
    run.append(t)
    container.append(run)
    paragraph._p.append(container)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def png_bytes(size: tuple[int, int] = (120, 80), color: str = "white") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def image_only_docx(image: bytes | None = None) -> bytes:
    """Build a .docx containing a picture and no text."""
    document = Document()
    document.add_picture(io.BytesIO(image or png_bytes()), width=Inches(2))
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


# =============================================================================
# In-memory collaborators
# =============================================================================


class MemoryStorage(BaseStorage):
    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    async def save(self, data: bytes, original_name: str) -> str:
        file_ref = f"{uuid.uuid4().hex}_{original_name}"
        self.files[file_ref] = data
        return file_ref

    async def read(self, file_ref: str) -> bytes:
        try:
            return self.files[file_ref]
        except KeyError:
            raise FileNotFoundError(file_ref) from None

    async def delete(self, file_ref: str) -> None:
        self.files.pop(file_ref, None)


class StubOcr(BaseOcrEngine):
    """Returns fixed text, or fails like a crashed OCR process."""

    def __init__(self, text: str = "", fail: bool = False) -> None:
        self.text = text
        self.fail = fail
        self.calls: list[Path] = []

    async def recognize(self, image_path: Path) -> str:
        self.calls.append(image_path)
        assert image_path.exists()
        if self.fail:
            raise SubprocessFailure("OCR exited with code 1", returncode=1, stderr="boom")
        return self.text


class MemoryRepository(BaseTemplateRepository):
    def __init__(self) -> None:
        self.templates: dict[uuid.UUID, FormTemplate] = {}
        self.variables: dict[uuid.UUID, TemplateVariableRecord] = {}
        self.entries: dict[uuid.UUID, FormEntry] = {}

    async def create_template(self, form_id, name, result: ImportResult) -> FormTemplate:
        template = FormTemplate(
            id=uuid.uuid4(),
            form_id=form_id,
            name=name,
            template_text=result.template_text,
            file_ref=result.file_ref,
            thumbnail_ref=result.thumbnail_ref,
            extraction_degraded=result.extraction_degraded,
        )
        self.templates[template.id] = template
        for variable in result.variables:
            await self.add_variable(template.id, variable)
        return template

    async def get_template(self, template_id):
        return self.templates.get(template_id)

    async def list_variables(self, template_id):
        return sorted(
            (v for v in self.variables.values() if v.template_id == template_id),
            key=lambda v: v.name,
        )

    async def add_variable(self, template_id, variable: TemplateVariable, extra=None):
        if any(v.name == variable.name for v in await self.list_variables(template_id)):
            raise DuplicateVariableError(variable.name)
        record = TemplateVariableRecord(
            id=uuid.uuid4(),
            template_id=template_id,
            name=variable.name,
            label=variable.label,
            type=variable.type,
            source=variable.source,
            **(extra or {}),
        )
        self.variables[record.id] = record
        return record

    async def update_variable(self, template_id, variable_id, changes: dict[str, Any]):
        record = self.variables.get(variable_id)
        if record is None or record.template_id != template_id:
            return None
        new_name = changes.get("name")
        if new_name and new_name != record.name:
            if any(v.name == new_name for v in await self.list_variables(template_id)):
                raise DuplicateVariableError(new_name)
        for key, value in changes.items():
            setattr(record, key, value)
        return record

    async def get_entry(self, entry_id):
        return self.entries.get(entry_id)

    def add_entry(self, form_id: uuid.UUID, values: dict[str, Any]) -> FormEntry:
        entry = FormEntry(id=uuid.uuid4(), form_id=form_id, values=values)
        self.entries[entry.id] = entry
        return entry


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def repository():
    return MemoryRepository()


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path
