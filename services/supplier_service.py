"""
Supplier profile service.

Profiles are edited by the admin workflow; this service only reads them.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.supplier import SupplierProfile
from exceptions import SupplierNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class SupplierService:
    """Read access to supplier column profiles."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "suppliers"

    def get_profile(self, supplier_id: str) -> SupplierProfile:
        """
        Get a supplier profile by ID.

        Args:
            supplier_id: Supplier UUID

        Returns:
            SupplierProfile

        Raises:
            SupplierNotFoundError: If supplier doesn't exist
            InvalidColumnMappingError: If the stored mappings are unusable
        """
        logger.debug("getting_supplier_profile", supplier_id=supplier_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", supplier_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_supplier_failed",
                supplier_id=supplier_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            raise SupplierNotFoundError(supplier_id)

        return SupplierProfile(**result.data[0])

    def list_profiles(self) -> list[SupplierProfile]:
        """All supplier profiles ordered by name."""
        try:
            result = self.db.table(self.table).select("*").order("name").execute()
        except Exception as e:
            logger.error("list_suppliers_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return [SupplierProfile(**row) for row in result.data]


# Singleton instance
_supplier_service: Optional[SupplierService] = None


def get_supplier_service() -> SupplierService:
    """Get or create SupplierService instance."""
    global _supplier_service
    if _supplier_service is None:
        _supplier_service = SupplierService()
    return _supplier_service
