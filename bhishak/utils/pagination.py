import math
from datetime import datetime, timezone

from bhishak.utils.error_handlers import ValidationError

# Deepest page a listing will serve
MAX_PAGE = 10000


def parse_pagination(args, default_limit=50, max_limit=100):
    """Reads `page` and `limit` from query args; both must be positive integers."""
    try:
        page = int(args.get('page', 1))
        limit = int(args.get('limit', default_limit))
    except (TypeError, ValueError):
        raise ValidationError('page and limit must be integers')

    if page < 1 or limit < 1:
        raise ValidationError('page and limit must be positive')
    if page > MAX_PAGE:
        raise ValidationError(f"page must not exceed {MAX_PAGE}")
    return page, min(limit, max_limit)


def paginate(query, page, limit):
    """Returns (items, total) for a query; never more than `limit` items."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def pagination_meta(page, limit, total):
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': math.ceil(total / limit),
    }


def parse_iso_datetime(value, field):
    """Parses an ISO-8601 date or datetime into a naive UTC datetime."""
    if value is None or value == '':
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f"Invalid {field}: expected an ISO-8601 date")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
