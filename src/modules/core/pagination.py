"""Page metadata for list endpoints.

List queries are paginated by the service layer (not by a DRF paginator)
so the same metadata shape is returned whether the caller is the API or
another service.
"""

from __future__ import annotations

import math
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class PageMetadata(BaseModel):
    """Immutable pagination metadata.

    An empty instance (all zeros) is returned when there are no records.
    """

    model_config = ConfigDict(frozen=True)

    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0

    def as_dict(self) -> Dict[str, Any]:
        if self.total_records == 0:
            return {}
        return self.model_dump()


def calculate_metadata(total_records: int, page: int, page_size: int) -> PageMetadata:
    if total_records == 0:
        return PageMetadata()
    return PageMetadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )
