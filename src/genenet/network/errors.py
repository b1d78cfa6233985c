"""Exceptions raised while constructing a co-expression network."""


class NetworkError(Exception):
    """Base class for network construction errors."""


class MalformedMatrix(NetworkError):
    """The score buffer does not match the declared gene count."""


class InvalidDimensions(NetworkError):
    """Scores, gene list or node index disagree on the network size."""


class ClusteringFailed(NetworkError):
    """Affinity propagation did not produce a usable clustering."""


class ClusteringInProgress(ClusteringFailed):
    """A clustering run is already outstanding for this engine."""
