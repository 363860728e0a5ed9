"""
tradecheck Services

Service layer containing all business logic.
Each provider-backed service has a defined interface (contract) and implementation.
"""

from tradecheck.services.base import BaseService, ServiceError

__all__ = ["BaseService", "ServiceError"]
