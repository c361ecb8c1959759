# errors.py
"""
Domain errors raised by the service layer.

Routers never build these; main.py maps each class to an HTTP status.
"""


class MedLedgerError(Exception):
     """Base class for all domain errors."""
     status_code = 400

     def __init__(self, message: str = ""):
          super().__init__(message or self.__class__.__name__)
          self.message = message or self.__class__.__name__


class DuplicateEmail(MedLedgerError):
     """Account creation with an email that is already registered."""
     status_code = 409


class InvalidCredentials(MedLedgerError):
     """Password or wallet signature did not match at login."""
     status_code = 401


class Forbidden(MedLedgerError):
     """Actor is acting as someone else, or has the wrong role."""
     status_code = 403


class Unauthorized(MedLedgerError):
     """Doctor has no live access grant for the patient."""
     status_code = 403


class MalformedCredential(MedLedgerError):
     """Signature or signed message could not be parsed."""
     status_code = 400


class NotFound(MedLedgerError):
     status_code = 404


class StorageError(MedLedgerError):
     """Underlying persistence failure."""
     status_code = 503
