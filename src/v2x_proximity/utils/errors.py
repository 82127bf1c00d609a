"""Exception hierarchy shared across the detection stack."""
from __future__ import annotations


class ProximityError(Exception):
    """Base class for all road network and detection failures."""


class UnknownNode(ProximityError):
    pass


class DuplicateEntity(ProximityError):
    pass


class ReconstructionInconsistency(ProximityError):
    """A predecessor chain references a hop with no connecting segment."""


class NetworkFileNotFound(ProximityError):
    pass


class SchemaFileNotFound(ProximityError):
    pass


class SchemaValidationError(ProximityError):
    pass


class InvalidConfigurationError(ProximityError):
    pass


class TraceValidationError(ProximityError):
    pass
