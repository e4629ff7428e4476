"""HTTP tests for the template and merge routes."""

import io
import uuid

import pytest
from docx import Document
from fastapi.testclient import TestClient

from conftest import StubOcr, docx_bytes, png_bytes
from docmerge.api.deps import (
    get_importer,
    get_merge_engine,
    get_preview_renderer,
    get_repository,
)
from docmerge.core.config import Settings, get_settings
from docmerge.interfaces.errors import ExtractionError
from docmerge.main import app
from docmerge.strategies.extraction import MammothTextExtractor
from docmerge.strategies.template_engine import MergeEngine, PreviewRenderer, TemplateImporter
from docmerge.strategies.template_engine.importer import DOCX_MEDIA_TYPE, FALLBACK_TEMPLATE_TEXT

LETTER = "Hello {{first name}}, your code is {{code-1}}."


@pytest.fixture
def ocr():
    return StubOcr()


@pytest.fixture
def client(repository, storage, work_dir, ocr):
    extractor = MammothTextExtractor()
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_importer] = lambda: TemplateImporter(
        extractor, ocr, storage, work_dir=work_dir
    )
    app.dependency_overrides[get_merge_engine] = lambda: MergeEngine(storage, work_dir=work_dir)
    app.dependency_overrides[get_preview_renderer] = lambda: PreviewRenderer(extractor)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def form_id():
    return uuid.uuid4()


def upload(client, form_id, data=None, filename="letter.docx", media_type=DOCX_MEDIA_TYPE):
    return client.post(
        "/templates/upload",
        files={"file": (filename, docx_bytes(LETTER) if data is None else data, media_type)},
        data={"form_id": str(form_id)},
    )


# =============================================================================
# Upload Tests
# =============================================================================


class TestUpload:
    """Test suite for POST /templates/upload."""

    def test_upload_detects_variables(self, client, form_id, repository):
        response = upload(client, form_id)

        assert response.status_code == 201
        body = response.json()
        assert [v["name"] for v in body["detected_variables"]] == ["first_name", "code_1"]
        assert [v["label"] for v in body["detected_variables"]] == ["First Name", "Code 1"]
        assert body["extraction_degraded"] is False
        template = repository.templates[uuid.UUID(body["template_id"])]
        assert template.name == "letter"
        assert template.form_id == form_id

    def test_reupload_creates_new_template(self, client, form_id):
        first = upload(client, form_id).json()
        second = upload(client, form_id).json()

        assert first["template_id"] != second["template_id"]
        assert first["stored_file_ref"] != second["stored_file_ref"]

    def test_ocr_failure_still_uploads(self, client, form_id, ocr):
        ocr.fail = True

        response = upload(client, form_id, png_bytes(), "scan.png", "image/png")

        assert response.status_code == 201
        body = response.json()
        assert body["template_text"] == FALLBACK_TEMPLATE_TEXT
        assert body["detected_variables"] == []
        assert body["extraction_degraded"] is True

    def test_invalid_placeholder(self, client, form_id, storage):
        response = upload(client, form_id, docx_bytes("{{name}} {{9lives}}"))

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "INVALID_PLACEHOLDER"
        assert body["extra"]["invalid_tokens"] == ["9lives"]
        assert storage.files == {}

    def test_not_a_document(self, client, form_id):
        response = upload(client, form_id, b"just text")

        assert response.status_code == 400
        assert response.json()["error_code"] == "FORMAT_ERROR"

    def test_too_large(self, client, form_id, tmp_path):
        app.dependency_overrides[get_settings] = lambda: Settings(
            max_upload_bytes=16,
            storage_dir=tmp_path / "s",
            work_dir=tmp_path / "w",
        )

        response = upload(client, form_id)

        assert response.status_code == 413


# =============================================================================
# Variable Tests
# =============================================================================


class TestVariables:
    """Test suite for the variable review routes."""

    @pytest.fixture
    def template_id(self, client, form_id):
        return upload(client, form_id).json()["template_id"]

    def test_list(self, client, template_id):
        response = client.get(f"/templates/{template_id}/variables")

        assert response.status_code == 200
        assert [v["name"] for v in response.json()] == ["code_1", "first_name"]

    def test_unknown_template(self, client):
        response = client.get(f"/templates/{uuid.uuid4()}/variables")

        assert response.status_code == 404

    def test_add_manual_variable(self, client, template_id):
        response = client.post(
            f"/templates/{template_id}/variables",
            json={"name": "due date", "type": "date"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "due_date"
        assert body["label"] == "Due Date"
        assert body["type"] == "date"
        assert body["source"] == "manual"

    def test_add_duplicate(self, client, template_id):
        response = client.post(f"/templates/{template_id}/variables", json={"name": "first-name"})

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_VARIABLE"

    def test_add_invalid_name(self, client, template_id):
        response = client.post(f"/templates/{template_id}/variables", json={"name": "1x"})

        assert response.status_code == 422
        assert response.json()["extra"]["invalid_tokens"] == ["1x"]

    def test_add_with_inverted_range(self, client, template_id):
        response = client.post(
            f"/templates/{template_id}/variables",
            json={"name": "amount", "type": "number", "min_value": 10, "max_value": 1},
        )

        assert response.status_code == 422

    def test_update_variable(self, client, template_id):
        variables = client.get(f"/templates/{template_id}/variables").json()
        code = next(v for v in variables if v["name"] == "code_1")

        response = client.patch(
            f"/templates/{template_id}/variables/{code['id']}",
            json={"label": "Reference", "use_random_initial": True, "min_value": 1, "max_value": 99},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["label"] == "Reference"
        assert body["name"] == "code_1"
        assert body["use_random_initial"] is True
        assert body["max_value"] == 99

    def test_rename_collision(self, client, template_id):
        variables = client.get(f"/templates/{template_id}/variables").json()
        code = next(v for v in variables if v["name"] == "code_1")

        response = client.patch(
            f"/templates/{template_id}/variables/{code['id']}",
            json={"name": "first name"},
        )

        assert response.status_code == 409

    def test_update_unknown_variable(self, client, template_id):
        response = client.patch(
            f"/templates/{template_id}/variables/{uuid.uuid4()}",
            json={"label": "x"},
        )

        assert response.status_code == 404


# =============================================================================
# Merge Tests
# =============================================================================


class TestMerge:
    """Test suite for POST /merge."""

    @pytest.fixture
    def template_id(self, client, form_id):
        return upload(client, form_id).json()["template_id"]

    def test_download(self, client, repository, template_id, form_id):
        entry = repository.add_entry(form_id, {"first_name": "Ana"})

        response = client.post("/merge", json={"template_id": template_id, "entry_id": str(entry.id)})

        assert response.status_code == 200
        assert response.headers["content-type"] == DOCX_MEDIA_TYPE
        assert 'filename="letter_merged.docx"' in response.headers["content-disposition"]
        assert response.headers["x-merge-degraded"] == "false"
        assert response.headers["x-unresolved-variables"] == ""
        paragraphs = [p.text for p in Document(io.BytesIO(response.content)).paragraphs]
        assert paragraphs == ["Hello Ana, your code is ."]

    def test_preview(self, client, repository, template_id, form_id):
        entry = repository.add_entry(form_id, {"first_name": "Ana", "code_1": 42})

        response = client.post(
            "/merge",
            json={"template_id": template_id, "entry_id": str(entry.id), "output_mode": "preview"},
        )

        assert response.status_code == 200
        body = response.json()
        assert "Hello Ana, your code is 42." in body["html"]
        assert body["degraded"] is False
        assert body["unresolved_variables"] == []

    def test_preview_conversion_failure_is_flagged(self, client, repository, template_id, form_id):
        class FailingRenderer(PreviewRenderer):
            def render(self, data: bytes) -> str:
                raise ExtractionError("mammoth could not read the document")

        app.dependency_overrides[get_preview_renderer] = lambda: FailingRenderer(MammothTextExtractor())
        entry = repository.add_entry(form_id, {"first_name": "Ana"})

        response = client.post(
            "/merge",
            json={"template_id": template_id, "entry_id": str(entry.id), "output_mode": "preview"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["degraded"] is True
        assert body["unresolved_variables"] == []
        assert "unavailable" in body["html"]

    def test_entry_from_another_form(self, client, repository, template_id):
        entry = repository.add_entry(uuid.uuid4(), {"first_name": "Ana"})

        response = client.post("/merge", json={"template_id": template_id, "entry_id": str(entry.id)})

        assert response.status_code == 400

    def test_unknown_entry(self, client, template_id):
        response = client.post("/merge", json={"template_id": template_id, "entry_id": str(uuid.uuid4())})

        assert response.status_code == 404

    def test_unknown_template(self, client):
        response = client.post(
            "/merge", json={"template_id": str(uuid.uuid4()), "entry_id": str(uuid.uuid4())}
        )

        assert response.status_code == 404

    def test_stored_file_missing(self, client, repository, storage, template_id, form_id):
        storage.files.clear()
        entry = repository.add_entry(form_id, {})

        response = client.post("/merge", json={"template_id": template_id, "entry_id": str(entry.id)})

        assert response.status_code == 404


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
