"""Read every row of a repository query, one page at a time."""

PAGE_SIZE = 1_000


def fetch_all(query, page_size: int | None = None) -> list:
    """Run ``query`` page by page until a short page comes back.

    Results are ordered by id so consecutive pages neither overlap nor skip.
    """
    page_size = page_size or PAGE_SIZE
    query = query.order_by("id")
    items = []
    offset = 0
    while True:
        page = query.offset(offset).limit(page_size).all().items
        items.extend(page)
        if len(page) < page_size:
            return items
        offset += page_size
