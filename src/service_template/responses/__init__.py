from .builder import ApiResponseBuilder
from .generic_response import GenericResponse
from .pagination import PageContext, PageResult, paginate_list

__all__ = ["ApiResponseBuilder", "GenericResponse", "PageContext", "PageResult", "paginate_list"]
