from django.conf import settings


def paginate(qs, page: int | None = None, limit: int | None = None) -> tuple[list, int, int, int]:
    """Slice ``qs`` by a 1-based page number.

    Returns ``(items, total, page, limit)``.  A page past the end yields an
    empty list rather than an error.
    """
    page = max(1, int(page or 1))
    limit = min(settings.MAX_PAGE_SIZE, max(1, int(limit or settings.DEFAULT_PAGE_SIZE)))
    total = qs.count()
    start = (page - 1) * limit
    items = list(qs[start:start + limit]) if start < total else []
    return items, total, page, limit


def page_payload(key: str, items: list, total: int, page: int, limit: int) -> dict:
    return {
        key: items,
        'total': total,
        'page': page,
        'limit': limit,
        'totalPages': (total + limit - 1) // limit,
    }
