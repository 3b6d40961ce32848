"""
Catalog import service.

Adds operator-reviewed extraction records to the catalog: uploads each
image to R2, then inserts the product row. Records are written in small
concurrent batches; one failing record never stops the rest.
"""

import asyncio
import base64
import binascii
from typing import Optional
import structlog

from config import get_supabase_client, settings
from exceptions import AppError, ValidationError, DatabaseError
from models.catalog import ImportFailure, ImportRecord, ImportRequest, ImportResult

logger = structlog.get_logger(__name__)

NO_IMAGE_URL = "/no-image.png"


def chunked(items: list, size: int) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class ImportService:
    """Bulk catalog writes."""

    def __init__(self, storage=None, batch_size: Optional[int] = None):
        self.db = get_supabase_client()
        self._storage = storage
        self.batch_size = batch_size or settings.import_batch_size

    @property
    def storage(self):
        if self._storage is None:
            from integrations.r2_storage import get_storage
            self._storage = get_storage()
        return self._storage

    def get_or_create_type(self, name: str) -> str:
        """Product type ID by name, creating the type if needed."""
        try:
            result = self.db.table("product_types").select("id").eq("name", name).execute()
            if result.data:
                return result.data[0]["id"]

            created = self.db.table("product_types").insert({"name": name}).execute()
            logger.info("product_type_created", name=name)
            return created.data[0]["id"]
        except Exception as e:
            logger.error("product_type_lookup_failed", name=name, error=str(e))
            raise DatabaseError("select", str(e))

    def upload_image(self, record: ImportRecord) -> str:
        """Public URL of the uploaded image, or the no-image path."""
        if not record.image_base64:
            return NO_IMAGE_URL

        try:
            content = base64.b64decode(record.image_base64)
        except (binascii.Error, ValueError):
            raise ValidationError(
                f"Image for {record.code} is not valid base64",
                details={"code": record.code}
            )

        return self.storage.put(content, key=None)

    def commit_record(self, record: ImportRecord, type_id: str) -> None:
        """
        Insert one product.

        Raises:
            ValidationError: Code already exists or image is invalid
            StorageError: Image upload failed
            DatabaseError: Insert failed
        """
        code = record.code.strip()

        try:
            existing = self.db.table("products").select("id").eq("code", code).execute()
        except Exception as e:
            raise DatabaseError("select", str(e))
        if existing.data:
            raise ValidationError(
                f"Product with code {code} already exists.",
                code="DUPLICATE_PRODUCT",
                details={"code": code}
            )

        image_url = self.upload_image(record)

        data = {
            "code": code,
            "type_id": type_id,
            "description": record.description or code,
            "product_details": record.product_details or None,
            "image_url": image_url,
            "link": record.link or None,
            "brand": record.brand or None,
            "keywords": record.keywords or None,
        }

        try:
            self.db.table("products").insert(data).execute()
        except Exception as e:
            logger.error("product_insert_failed", code=code, error=str(e))
            raise DatabaseError("insert", str(e))

    async def _commit_one(self, record: ImportRecord, type_id: str) -> Optional[ImportFailure]:
        try:
            await asyncio.to_thread(self.commit_record, record, type_id)
        except AppError as e:
            logger.warning("import_record_failed", code=record.code, error=e.message)
            return ImportFailure(code=record.code, reason=e.message)
        return None

    async def commit_records(self, request: ImportRequest) -> ImportResult:
        """
        Import all records in batches of batch_size.

        Every batch is awaited before the counts are reported.
        """
        type_id = await asyncio.to_thread(self.get_or_create_type, request.type_name)
        result = ImportResult()

        for batch in chunked(request.records, self.batch_size):
            outcomes = await asyncio.gather(*(self._commit_one(r, type_id) for r in batch))
            for failure in outcomes:
                if failure is None:
                    result.created += 1
                else:
                    result.failed += 1
                    result.failures.append(failure)

        logger.info(
            "catalog_import_completed",
            records=len(request.records),
            created=result.created,
            failed=result.failed,
            batch_size=self.batch_size
        )
        return result


# Singleton instance
_import_service: Optional[ImportService] = None


def get_import_service() -> ImportService:
    """Get or create ImportService instance."""
    global _import_service
    if _import_service is None:
        _import_service = ImportService()
    return _import_service
