import math
from flask import request
from sqlalchemy import or_

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def get_page_args():
    """Read `page` and `limit` from the query string, falling back to sane defaults."""
    page = request.args.get("page", 1, type=int) or 1
    limit = request.args.get("limit", DEFAULT_LIMIT, type=int) or DEFAULT_LIMIT
    page = page if page > 0 else 1
    limit = limit if limit > 0 else DEFAULT_LIMIT
    return page, min(limit, MAX_LIMIT)


def apply_search(query, model, search_term, search_columns):
    if search_term:
        search_filters = [
            getattr(model, col).ilike(f"%{search_term}%") for col in search_columns
        ]
        query = query.filter(or_(*search_filters))
    return query


def apply_pagination_and_search(query, model, search_term, search_columns, page=1, per_page=DEFAULT_LIMIT):
    """
    Applies search filtering and pagination to a SQLAlchemy query.

    Args:
      query: base SQLAlchemy query
      model: SQLAlchemy model class
      search_term: string to search for
      search_columns: list of column names (strings) to search within model
      page: int, current page number
      per_page: int, number of items per page

    Returns:
      Pagination object with .items, .total, .page, .pages etc.
    """
    query = apply_search(query, model, search_term, search_columns)

    page = page if page > 0 else 1
    per_page = per_page if per_page > 0 else DEFAULT_LIMIT

    return query.paginate(page=page, per_page=per_page, error_out=False)


def paginated_response(paginated, serializer):
    """Build the list envelope: success, count, total, pagination and data."""
    items = [serializer(item) for item in paginated.items]
    total = paginated.total or 0
    return {
        "success": True,
        "count": len(items),
        "total": total,
        "pagination": {
            "page": paginated.page,
            "limit": paginated.per_page,
            "total_pages": math.ceil(total / paginated.per_page) if paginated.per_page else 0,
        },
        "data": items,
    }
