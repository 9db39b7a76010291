from __future__ import annotations

import logging
import time

from graphql import GraphQLError
from strawberry.extensions import MaskErrors, SchemaExtension

from ..core.constants import DEFAULT_SLOW_OPERATION_MS
from ..core.enums import ErrorCode
from ..core.exceptions import error_code_of

logger = logging.getLogger(__name__)

INTERNAL_MESSAGE = "An internal error occurred"


def is_internal_error(error: GraphQLError) -> bool:
    # errors raised by graphql itself (syntax, validation) carry no original error
    if error.original_error is None:
        return False
    return error_code_of(error.original_error) == ErrorCode.INTERNAL


class InternalErrorMasking(MaskErrors):
    """Replace unexpected failures with a generic message; domain errors pass through."""

    def __init__(self) -> None:
        super().__init__(should_mask_error=is_internal_error, error_message=INTERNAL_MESSAGE)

    def anonymise_error(self, error: GraphQLError) -> GraphQLError:
        logger.error("internal error at %s: %s", error.path, error.message, exc_info=error.original_error)
        return GraphQLError(
            message=self.error_message,
            nodes=error.nodes,
            source=error.source,
            positions=error.positions,
            path=error.path,
            original_error=None,
            extensions={"code": ErrorCode.INTERNAL.value},
        )


class SlowOperationLogger(SchemaExtension):
    def __init__(self, *, threshold_ms: int = DEFAULT_SLOW_OPERATION_MS) -> None:
        self.threshold_ms = threshold_ms

    def on_operation(self):
        started = time.perf_counter()
        yield
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms >= self.threshold_ms:
            logger.warning(
                "slow GraphQL operation %s: %.0f ms",
                self.execution_context.operation_name or "<anonymous>",
                elapsed_ms,
            )
