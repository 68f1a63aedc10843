"""
Base service classes.
Services contain business logic and orchestrate between repositories.
"""
import logging

from core.context import AuthContext
from core.exceptions import PermissionDeniedError
from core.permissions import require_capability

logger = logging.getLogger(__name__)


class BaseService:
    """
    Base service class providing common functionality.
    Services should contain business logic and use repositories for data access.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def log_info(self, message: str, **context):
        """Log info message with context"""
        self.logger.info(f"{message} | Context: {context}")

    def log_warning(self, message: str, **context):
        """Log warning message with context"""
        self.logger.warning(f"{message} | Context: {context}")

    def log_error(self, message: str, error: Exception = None, **context):
        """Log error message with context"""
        if error:
            self.logger.error(f"{message} | Context: {context}", exc_info=error)
        else:
            self.logger.error(f"{message} | Context: {context}")

    def require(self, ctx: AuthContext, capability: str) -> int:
        """Check a capability and return the caller's residence id"""
        require_capability(ctx, capability)
        return ctx.require_residence()

    def ensure_same_residence(self, ctx: AuthContext, residence_id: int, message: str = None):
        """Reject access to a record owned by another residence"""
        if residence_id != ctx.residence_id:
            raise PermissionDeniedError(
                message or "You can only access records of your own residence",
                code="OTHER_RESIDENCE",
            )
