class PromoEngineException(Exception):
    """Base exception for all domain exceptions"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

class EntityNotFoundError(PromoEngineException):
    """Raised when an entity is not found in the database"""
    pass

class BusinessLogicError(PromoEngineException):
    """Raised when a business rule is violated"""
    pass

class RepositoryUnavailableError(PromoEngineException):
    """Raised when the promotion store fails to respond"""
    pass
