"""Error classification and user-facing error messages.

Classes:
    :class:`ErrorClassifier` -- maps an exception to an exit code and prints it.
    :class:`ClassifiedError` -- the pure result of classification.
    :class:`ErrorFormatter` -- renders ``Error:`` banners and hint lines.
    :class:`MessageCatalog` -- read-only hint and API-message tables.

Example::

    from stackeye.errors import ErrorClassifier

    code = ErrorClassifier().handle(exc)
"""

from stackeye.errors.catalog import MessageCatalog
from stackeye.errors.classifier import ClassifiedError, ErrorClassifier
from stackeye.errors.formatter import ErrorFormatter
from stackeye.errors.suggestions import suggest_from_options, validate_choice

__all__ = [
    "ClassifiedError",
    "ErrorClassifier",
    "ErrorFormatter",
    "MessageCatalog",
    "suggest_from_options",
    "validate_choice",
]
