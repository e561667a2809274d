class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str):
        super().__init__(f"Product with ID {product_id} not found in the database")
        self.product_id = product_id


class ImportFileError(AppError):
    """The whole import was rejected (bad file, missing columns, no valid rows)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PersistenceError(AppError):
    pass
