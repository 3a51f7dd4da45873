class GreenButtonError(Exception): ...


class ConfigError(GreenButtonError): ...


class IngestError(GreenButtonError): ...


class InputAccessError(IngestError): ...


class MalformedDocumentError(IngestError): ...


class MergeSourceError(InputAccessError): ...


class EmptyResultError(GreenButtonError): ...


class StatementError(GreenButtonError): ...


class OutputError(GreenButtonError): ...


def require(condition: bool, message: str, exc: type[GreenButtonError] = GreenButtonError):
    """Raise the given exception if condition is False."""
    if not condition:
        raise exc(message)
