"""Exceptions raised while deriving the Kubernetes bootstrap configuration."""


class KubernetesError(Exception):
    """Base class for every Kubernetes configuration failure."""
    pass


class ConfigParseError(KubernetesError):
    """Raised when a partial configuration document is not valid structured data."""
    pass


class InitialiserAmbiguityError(KubernetesError):
    """Raised when a multi node topology has no node that can initialise the cluster."""
    pass


class CNIFormatError(KubernetesError):
    """Raised when the configured CNI cannot be normalised."""
    pass


class UnsupportedPlatformError(KubernetesError):
    """Raised when a CNI or multus is requested on an architecture that lacks it."""
    pass


class ArtefactDownloadError(KubernetesError):
    """Raised when fetching a release artefact fails."""
    pass


class UnknownDistributionError(KubernetesError):
    """Raised when a version string matches no known Kubernetes distribution."""
    pass


class RenderError(KubernetesError):
    """Raised when an installer script or manifest template cannot be rendered."""
    pass
