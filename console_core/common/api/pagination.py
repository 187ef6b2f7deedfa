# console_core/common/api/pagination.py
from __future__ import annotations

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 200


def paginate(request, queryset, serializer_class, *, paginator: PageNumberPagination | None = None) -> Response:
    """
    List responses always have the shape {count, next, previous, results},
    so console tables can page users, departments and audit events the same way.
    """
    p = paginator or DefaultPagination()
    page = p.paginate_queryset(queryset, request)
    if page is None:
        # pagination disabled on the paginator: same envelope, one page
        data = serializer_class(queryset, many=True).data
        return Response({"count": len(data), "next": None, "previous": None, "results": data})
    return p.get_paginated_response(serializer_class(page, many=True).data)
