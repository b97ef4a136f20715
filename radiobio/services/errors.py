"""
errors.py
---------
Validation errors raised by the radiobiology engine.

All of them derive from ValueError so callers that only care about
"bad input" can catch one type. The app layer maps every subclass to
HTTP 400 with the message as detail.
"""


class RadiobiologyError(ValueError):
    """Base class for inputs that are not physically or clinically meaningful."""


class InvalidScheme(RadiobiologyError):
    """Non-positive dose per fraction, fraction count or alpha/beta, or negative time."""


class InvalidModel(RadiobiologyError):
    """Non-positive D50 or gamma50."""


class InvalidRisk(RadiobiologyError):
    """Target probability outside the open interval (0, 1)."""


class InvalidGap(RadiobiologyError):
    """Negative missed days or negative daily loss rate."""


class InvalidCurve(RadiobiologyError):
    """Dose axis that is empty or not increasing."""
