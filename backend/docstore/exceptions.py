"""Custom exceptions for the docstore package."""


class DocumentStoreError(Exception):
    """Base exception for repository errors raised by this package."""

    pass


class ConfigurationError(DocumentStoreError):
    """Store configuration could not be loaded."""

    pass


class MissingConfigurationError(ConfigurationError):
    """A required configuration key is absent or empty."""

    def __init__(self, key: str):
        super().__init__(f"Missing required configuration value: '{key}'")
        self.key = key


class InvalidQueryError(DocumentStoreError):
    """Raw query string could not be parsed into a filter document."""

    pass


class ScanNotAllowedError(DocumentStoreError):
    """Query filters on fields no index covers while scans are disabled."""

    def __init__(self, collection: str, fields: list[str]):
        joined = ", ".join(fields)
        super().__init__(
            f"Query on '{collection}' filters on non-indexed field(s) {joined}; "
            "enable_scan is required"
        )
        self.collection = collection
        self.fields = fields


class DocumentNotFoundError(DocumentStoreError):
    """No document exists with the requested id."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(f"Document '{document_id}' not found in '{collection}'")
        self.collection = collection
        self.document_id = document_id


class PreconditionFailedError(DocumentStoreError):
    """Stored etag no longer matches the one supplied with the write."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(
            f"Document '{document_id}' in '{collection}' was modified concurrently"
        )
        self.collection = collection
        self.document_id = document_id
