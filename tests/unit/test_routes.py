"""
API tests for the route layer.

Run: pytest tests/unit/test_routes.py -v
"""

from unittest.mock import MagicMock, patch

from exceptions import ConversionError
from services.document_assembler_service import DocumentAssemblerService
from tests.factories import build_table_docx, png_bytes, template_bytes


def product(code: str, **kwargs) -> dict:
    return {"code": code, "description": f"Product {code}", **kwargs}


class TestReconciliationRoute:

    def test_reconcile(self, test_client_with_mock_db, mock_supabase, sample_catalog_rows):
        mock_supabase.set_table_data("products", sample_catalog_rows)

        response = test_client_with_mock_db.post(
            "/api/reconciliation",
            json={"codes": ["k100", "CWH661500DWM"]}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["matchedCount"] == 1
        assert body["results"][0]["exactMatch"]["code"] == "K100"
        assert body["results"][1]["suggestions"][0]["entry"]["code"] == "A8 CWH66-1500DWM"
        assert body["results"][1]["suggestions"][0]["matchType"] == "contains"

    def test_empty_codes_rejected(self, test_client_with_mock_db):
        response = test_client_with_mock_db.post("/api/reconciliation", json={"codes": []})

        assert response.status_code == 422


class TestCatalogRoutes:

    def test_get_entry(self, test_client_with_mock_db, mock_supabase, sample_catalog_rows):
        mock_supabase.set_table_data("products", sample_catalog_rows)

        response = test_client_with_mock_db.get("/api/catalog/K100")

        assert response.status_code == 200
        assert response.json()["typeName"] == "Tapware"

    def test_missing_entry(self, test_client_with_mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [])

        response = test_client_with_mock_db.get("/api/catalog/NOPE")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"


class TestDocumentRoutes:

    def make_service(self, converter):
        return DocumentAssemblerService(
            template_bytes=template_bytes(),
            placeholder_image=png_bytes(),
            converter=converter,
        )

    def test_docx_attachment(self, test_client_with_mock_db):
        service = self.make_service(MagicMock())

        with patch("routes.documents.get_document_assembler_service", return_value=service):
            response = test_client_with_mock_db.post("/api/documents/generate", json={
                "address": "12 Ocean View Rd",
                "date": "2026-10-19",
                "format": "docx",
                "products": [product("K100", category="Kitchen")],
            })

        assert response.status_code == 200
        assert "wordprocessingml" in response.headers["content-type"]
        assert 'filename="ProductSelectionOVR19102026.docx"' in response.headers["content-disposition"]
        assert "x-conversion-error" not in response.headers

    def test_pdf_degrades_to_docx(self, test_client_with_mock_db):
        converter = MagicMock()
        converter.convert.side_effect = ConversionError("Conversion job did not finish: error")
        service = self.make_service(converter)

        with patch("routes.documents.get_document_assembler_service", return_value=service):
            response = test_client_with_mock_db.post("/api/documents/generate", json={
                "address": "12 Ocean View Rd",
                "date": "2026-10-19",
                "products": [product("K100")],
            })

        assert response.status_code == 200
        assert "wordprocessingml" in response.headers["content-type"]
        assert "did not finish" in response.headers["x-conversion-error"]

    def test_blank_address(self, test_client_with_mock_db):
        service = self.make_service(MagicMock())

        with patch("routes.documents.get_document_assembler_service", return_value=service):
            response = test_client_with_mock_db.post("/api/documents/generate", json={
                "address": "",
                "products": [product("K100")],
            })

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestExtractionRoutes:

    def test_extract_heuristic(self, test_client_with_mock_db):
        docx = build_table_docx([
            ["Image", "Name", "Code"],
            [png_bytes(), "Wall Hung Vanity", "BWA-CWH66"],
        ])

        response = test_client_with_mock_db.post(
            "/api/extraction/extract",
            files={"file": ("quote.docx", docx, "application/octet-stream")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["strategy"] == "heuristic_bwa"
        assert body["records"][0]["code"] == "CWH66"
        assert body["records"][0]["imageBase64"]

    def test_unsupported_file(self, test_client_with_mock_db):
        response = test_client_with_mock_db.post(
            "/api/extraction/extract",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "UNSUPPORTED_FILE_TYPE"
