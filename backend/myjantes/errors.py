"""Domain errors raised below the router layer.

``main.py`` maps them to HTTP responses; everything else goes through
``HTTPException`` as usual.
"""


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SlotUnavailable(DomainError):
    """The (date, time slot) is full or closed by an admin."""

    status_code = 409

    def __init__(self, key: str, reason: str):
        super().__init__(f"Créneau {key} indisponible : {reason}")
        self.key = key
        self.reason = reason


class InvalidStatusTransition(DomainError):
    status_code = 409

    def __init__(self, current, target):
        cur = getattr(current, "value", current)
        tgt = getattr(target, "value", target)
        super().__init__(f"Transition de statut invalide : {cur} -> {tgt}")
        self.current = current
        self.target = target
