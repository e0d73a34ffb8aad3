from __future__ import annotations


class BikeshopError(RuntimeError):
    pass


class ValidationError(BikeshopError):
    """Bad input shape or range. Carries every message, not just the first."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class AuthError(BikeshopError):
    pass


class ConflictError(BikeshopError):
    pass


class NotFoundError(BikeshopError):
    def __init__(self, entity_type: str, entity_id: object):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found")


class StoreError(BikeshopError):
    pass
