"""Custom exceptions for the metrics pipeline."""


class MetricsPipelineError(RuntimeError):
    """Base error for the metrics ingestion and aggregation pipeline."""


class MalformedInputError(MetricsPipelineError):
    """Raised when the source data has no usable structure at all.

    Data-quality problems (short rows, unparseable cells, odd headers) are
    tolerated; this is reserved for input that cannot be read as a metrics
    export, such as empty text or a missing header row.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
