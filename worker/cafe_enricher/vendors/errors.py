"""Errors raised by the Naver API clients."""


class TransportError(RuntimeError):
    """Raised when a provider call fails at the network or HTTP level."""


class MalformedResponseError(TransportError):
    """Raised when a provider answers 2xx with a payload we cannot read."""
