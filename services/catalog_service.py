"""
Catalog read service.

Read-only access to the products table: lookup by code, full listing for
reconciliation, and free-text search. Writes go through ImportService.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.catalog import CatalogEntry
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

PRODUCT_COLUMNS = "*, type:product_types(id, name)"


class CatalogService:
    """
    Catalog read interface.

    Every call queries Supabase; nothing is cached between requests.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    def find_by_code(self, code: str) -> Optional[CatalogEntry]:
        """
        Get a catalog entry by its exact code.

        Args:
            code: Product code as stored

        Returns:
            CatalogEntry or None if not found
        """
        logger.debug("getting_product_by_code", code=code)

        try:
            result = (
                self.db.table(self.table)
                .select(PRODUCT_COLUMNS)
                .eq("code", code)
                .limit(1)
                .execute()
            )

            if not result.data:
                return None

            return CatalogEntry(**result.data[0])

        except Exception as e:
            logger.error(
                "get_product_by_code_failed",
                code=code,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def list_all(self, limit: Optional[int] = None) -> list[CatalogEntry]:
        """
        Get the catalog snapshot used for reconciliation.

        Args:
            limit: Optional cap on rows returned

        Returns:
            Entries ordered by code
        """
        logger.info("listing_catalog", limit=limit)

        try:
            query = self.db.table(self.table).select(PRODUCT_COLUMNS).order("code")
            if limit:
                query = query.limit(limit)

            result = query.execute()
            entries = [CatalogEntry(**row) for row in result.data]

            logger.info("catalog_listed", count=len(entries))
            return entries

        except Exception as e:
            logger.error(
                "list_catalog_failed",
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def search(self, query: str, limit: int = 20) -> list[CatalogEntry]:
        """
        Search products by code, description, brand or keywords.

        Args:
            query: Free text (case-insensitive substring)
            limit: Maximum results

        Returns:
            Matching entries ordered by code
        """
        query = query.strip()
        if not query:
            return []

        logger.debug("searching_catalog", query=query, limit=limit)

        # PostgREST or-filter syntax; commas and parens would split the filter
        term = query.replace(",", " ").replace("(", " ").replace(")", " ")
        pattern = f"%{term}%"

        try:
            result = (
                self.db.table(self.table)
                .select(PRODUCT_COLUMNS)
                .or_(
                    f"code.ilike.{pattern},"
                    f"description.ilike.{pattern},"
                    f"brand.ilike.{pattern},"
                    f"keywords.ilike.{pattern}"
                )
                .order("code")
                .limit(limit)
                .execute()
            )

            return [CatalogEntry(**row) for row in result.data]

        except Exception as e:
            logger.error(
                "search_catalog_failed",
                query=query,
                error=str(e)
            )
            raise DatabaseError("select", str(e))


# Singleton instance
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
