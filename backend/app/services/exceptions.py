class ServiceError(Exception):
    """Base class for failures of an outbound collaborator"""


class ConfigurationError(ServiceError):
    """A credential or setting the service needs is missing"""


class UpstreamServiceError(ServiceError):
    """The external API rejected or failed the call"""
