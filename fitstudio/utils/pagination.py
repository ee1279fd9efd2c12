from flask import request, current_app


def page_args():
    """Read ?page=&limit= with the configured default and ceiling."""
    page = max(request.args.get('page', 1, type=int), 1)
    limit = request.args.get('limit', current_app.config['DEFAULT_PAGE_SIZE'], type=int)
    limit = min(max(limit, 1), current_app.config['MAX_PAGE_SIZE'])
    return page, limit


def paginated(pagination):
    return {
        'data': [item.to_dict() for item in pagination.items],
        'pagination': {
            'page': pagination.page,
            'limit': pagination.per_page,
            'total': pagination.total,
            'totalPages': pagination.pages
        }
    }
