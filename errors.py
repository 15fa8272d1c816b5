"""Key Issuer - Error Types"""


class KeyIssuerError(Exception):
    """Base class for all key issuer failures."""
    exit_code = 1


class EntropyUnavailable(KeyIssuerError):
    """The platform cannot supply cryptographically secure randomness."""


class InvalidKey(KeyIssuerError):
    """A scalar is not a valid secp256k1 private key."""


class InvalidAddress(KeyIssuerError):
    """A string is not an Ethereum account address."""
    exit_code = 2


class OutputChannelUnavailable(KeyIssuerError):
    """The pipeline-output mechanism is missing or not writable."""


class ConfigurationError(KeyIssuerError):
    """A setting or command-line option has an unusable value."""
    exit_code = 2
