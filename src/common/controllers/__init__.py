from .auth import StaffAuthController

__all__ = ["StaffAuthController"]
