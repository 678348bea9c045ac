from .check_in import CheckInController

__all__ = ["CheckInController"]
