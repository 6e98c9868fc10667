class TraceabilityError(Exception):
    """Base class for traceability errors."""


class RecordStoreError(TraceabilityError):
    """The record store could not be reached or returned an error."""


class ChainOrderError(TraceabilityError):
    """An appended record would not be strictly after the batch's last record."""


class StageNotPermitted(TraceabilityError):
    """The actor's role may not record this stage."""


class ImmutableRecordError(TraceabilityError):
    """Traceability records are append-only."""


class ChainForkError(ChainOrderError):
    """Another record was appended to the batch concurrently; the chain would fork."""
