"""Product listing filters and their query-string form."""

from pydantic import BaseModel, ConfigDict, Field

from shared.schemas import Category, Region

_SORT_FIELDS = {"createdAt", "basePrice", "soldCount", "rating", "name"}


class ProductFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    region: Region | None = None
    category: Category | None = None
    vendor_id: str | None = None
    keyword: str | None = None
    featured: bool | None = None
    available: bool | None = None
    page: int = Field(default=0, ge=0)
    size: int = Field(default=12, ge=1, le=100)
    sort_by: str | None = None
    descending: bool = True

    def to_params(self) -> dict:
        """Query parameters understood by `GET /products`. Unset filters are omitted."""
        params: dict = {"page": self.page, "size": self.size}
        if self.region is not None:
            params["region"] = self.region.value
        if self.category is not None:
            params["category"] = self.category.value
        if self.vendor_id:
            params["vendorId"] = self.vendor_id
        if self.keyword and self.keyword.strip():
            params["search"] = self.keyword.strip()
        if self.featured is not None:
            params["featured"] = self.featured
        if self.available is not None:
            params["available"] = self.available
        if self.sort_by in _SORT_FIELDS:
            params["sortBy"] = self.sort_by
            params["sortDirection"] = "DESC" if self.descending else "ASC"
        return params

    def next_page(self) -> "ProductFilters":
        return self.model_copy(update={"page": self.page + 1})
