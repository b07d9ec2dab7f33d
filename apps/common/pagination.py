from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """
    Default page-number pagination used across the API.

    Clients may ask for a smaller or larger page with ?page_size=,
    capped at max_page_size.
    """
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100
