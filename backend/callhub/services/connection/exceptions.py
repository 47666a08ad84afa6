"""
Connection Exceptions
"""


class DeliveryError(Exception):
    """Raised when a frame cannot be written to a session.

    Never escapes the connection layer: it is logged and reported as a
    failed delivery so fan-out keeps going.
    """
    pass
