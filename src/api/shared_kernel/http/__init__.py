"""HTTP contract shared by every service: envelopes, parameters, accessors."""

from shared_kernel.http.envelope import (
    ErrorResponse,
    FieldError,
    SuccessResponse,
    respond_created,
    respond_not_found,
    respond_with_api_error,
    respond_with_data,
    respond_with_error,
    respond_with_internal_error,
    respond_with_json,
    respond_with_message,
    respond_with_validation_error,
    respond_with_validation_errors,
    utc_timestamp,
    validation_failed,
)
from shared_kernel.http.params import (
    FilterParams,
    PaginationParams,
    parse_filter_params,
    parse_pagination_params,
)
from shared_kernel.http.request import (
    build_url,
    extract_path_segment,
    get_header_value,
    parse_json_body,
    parse_uuid_param,
    path_param,
    query_param,
    required_query_param,
)

__all__ = [
    "ErrorResponse",
    "FieldError",
    "FilterParams",
    "PaginationParams",
    "SuccessResponse",
    "build_url",
    "extract_path_segment",
    "get_header_value",
    "parse_filter_params",
    "parse_json_body",
    "parse_pagination_params",
    "parse_uuid_param",
    "path_param",
    "query_param",
    "required_query_param",
    "respond_created",
    "respond_not_found",
    "respond_with_api_error",
    "respond_with_data",
    "respond_with_error",
    "respond_with_internal_error",
    "respond_with_json",
    "respond_with_message",
    "respond_with_validation_error",
    "respond_with_validation_errors",
    "utc_timestamp",
    "validation_failed",
]
