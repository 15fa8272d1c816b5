"""
Key Issuer - Keypair Generation

Generates a random secp256k1 private key, derives its Ethereum account
address, and hands both to stdout and a pipeline-output sink.

All curve arithmetic and hashing is done by eth_account / eth_keys.
"""

import logging
import re
import secrets
import sys
from dataclasses import dataclass
from typing import Iterable, List, Optional, TextIO, Union

from eth_account import Account
from eth_keys.constants import SECPK1_N
from eth_keys.exceptions import ValidationError
from web3 import Web3

from errors import EntropyUnavailable, InvalidAddress, InvalidKey, OutputChannelUnavailable
from output_sinks import OutputSink

logger = logging.getLogger(__name__)

PRIVATE_KEY_BYTES = 32
_HEX_KEY = re.compile(r"[0-9a-fA-F]{64}")

# Bound on rejection sampling. A draw is out of range with probability ~2^-128,
# so hitting this means the source is broken, not unlucky.
MAX_DRAW_ATTEMPTS = 16

PRIVATE_KEY_OUTPUT = "private_key"
ACCOUNT_ADDRESS_OUTPUT = "account_address"


# =============================================================================
# Random Sources
# =============================================================================

class RandomSource:
    """Supplies cryptographically secure random bytes."""

    def read(self, n: int) -> bytes:
        raise NotImplementedError


class SystemRandomSource(RandomSource):
    """The operating system CSPRNG."""

    def read(self, n: int) -> bytes:
        try:
            return secrets.token_bytes(n)
        except (NotImplementedError, OSError) as e:
            raise EntropyUnavailable(f"OS random source unavailable: {e}") from e


class FixedRandomSource(RandomSource):
    """
    Replays a fixed sequence of byte strings, one per read.

    Used to make key generation reproducible in tests.
    """

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks: List[bytes] = list(chunks)

    def read(self, n: int) -> bytes:
        if not self._chunks:
            raise EntropyUnavailable("Fixed random source exhausted")
        return self._chunks.pop(0)


# =============================================================================
# Derivation
# =============================================================================

@dataclass(frozen=True)
class IssuedKey:
    """A generated private key and the account address derived from it."""
    private_key: bytes
    account_address: str

    @property
    def private_key_hex(self) -> str:
        return "0x" + self.private_key.hex()

    @property
    def redacted_private_key(self) -> str:
        full = self.private_key_hex
        return f"{full[:6]}...{full[-4:]}"


def is_valid_scalar(value: int) -> bool:
    return 0 < value < SECPK1_N


def parse_private_key(key: Union[bytes, str]) -> bytes:
    """
    Normalize a private key to its raw 32 bytes.

    Accepts raw bytes or a hex string with or without the 0x prefix.
    Raises InvalidKey for anything that is not a valid secp256k1 scalar.
    """
    if isinstance(key, str):
        text = key.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        if not _HEX_KEY.fullmatch(text):
            raise InvalidKey(f"Private key must be {PRIVATE_KEY_BYTES * 2} hex digits")
        raw = bytes.fromhex(text)
    elif isinstance(key, (bytes, bytearray)):
        raw = bytes(key)
    else:
        raise InvalidKey(f"Unsupported private key type: {type(key).__name__}")

    if len(raw) != PRIVATE_KEY_BYTES:
        raise InvalidKey(f"Private key must be {PRIVATE_KEY_BYTES} bytes, got {len(raw)}")
    if not is_valid_scalar(int.from_bytes(raw, "big")):
        raise InvalidKey("Private key scalar must be nonzero and less than the secp256k1 order")
    return raw


def derive_account(key: Union[bytes, str]) -> str:
    """
    Derive the checksummed account address for a private key.

    Args:
        key: 32 raw bytes, or a hex string (0x prefix optional)

    Returns:
        EIP-55 checksummed address, e.g. "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
    """
    raw = parse_private_key(key)
    try:
        return Account.from_key(raw).address
    except (ValidationError, ValueError) as e:
        raise InvalidKey(f"Key derivation failed: {e}") from e


def verify_account(key: Union[bytes, str], address: str) -> bool:
    """Check that ``address`` is the account derived from ``key``."""
    if not Web3.is_address(address):
        raise InvalidAddress(f"Not an Ethereum address: {address}")
    return derive_account(key) == Web3.to_checksum_address(address)


# =============================================================================
# Issuer
# =============================================================================

class KeyIssuer:
    """
    Generates a keypair and emits it.

    Entropy and the pipeline-output channel are injected so that runs can be
    made deterministic without touching the real environment.
    """

    def __init__(
        self,
        random_source: Optional[RandomSource] = None,
        sink: Optional[OutputSink] = None,
        stream: Optional[TextIO] = None,
        allow_secret_output: bool = False,
        mask_secret: bool = False,
    ):
        """
        Args:
            random_source: Entropy source (defaults to the OS CSPRNG)
            sink: Pipeline-output channel; None disables it
            stream: Human-readable output stream (defaults to stdout)
            allow_secret_output: Print the private key and pass it to the sink
            mask_secret: Ask the sink to mask the private key in CI logs
        """
        self.random_source = random_source or SystemRandomSource()
        self.sink = sink
        self.stream = stream
        self.allow_secret_output = allow_secret_output
        self.mask_secret = mask_secret

    def generate(self) -> IssuedKey:
        """
        Draw a uniformly random valid private key and derive its account.

        Out-of-range candidates are rejected and redrawn.
        """
        for attempt in range(1, MAX_DRAW_ATTEMPTS + 1):
            candidate = self.random_source.read(PRIVATE_KEY_BYTES)
            if len(candidate) != PRIVATE_KEY_BYTES:
                raise EntropyUnavailable(
                    f"Random source returned {len(candidate)} bytes, expected {PRIVATE_KEY_BYTES}"
                )
            if is_valid_scalar(int.from_bytes(candidate, "big")):
                issued = IssuedKey(private_key=candidate, account_address=derive_account(candidate))
                logger.debug(f"Key accepted after {attempt} draw(s)")
                return issued
            logger.debug(f"Draw {attempt} outside the secp256k1 scalar range, redrawing")

        raise EntropyUnavailable(f"No valid scalar after {MAX_DRAW_ATTEMPTS} draws")

    def emit(self, issued: IssuedKey) -> None:
        """Write the key and address to the output stream and the sink."""
        stream = self.stream or sys.stdout
        shown_key = issued.private_key_hex if self.allow_secret_output else issued.redacted_private_key

        # Masking only affects log lines written after the command.
        if self.allow_secret_output and self.mask_secret and self.sink is not None:
            self.sink.mask(issued.private_key_hex)

        stream.write(f"Random Ethereum private key: {shown_key}\n")
        stream.write(f"Account address: {issued.account_address}\n")
        stream.flush()

        if not self.allow_secret_output:
            logger.warning(
                "Secret output is disabled; private key redacted and not passed to the pipeline. "
                "Use --allow-secret-output to expose it."
            )

        if self.sink is None:
            logger.info("No pipeline output channel configured")
            return

        try:
            if self.allow_secret_output:
                self.sink.write(PRIVATE_KEY_OUTPUT, issued.private_key_hex)
            self.sink.write(ACCOUNT_ADDRESS_OUTPUT, issued.account_address)
        except OutputChannelUnavailable as e:
            logger.warning(f"Pipeline output not written: {e}")
            return

        logger.info(f"Pipeline outputs written for {issued.account_address}")

    def issue(self) -> IssuedKey:
        """Generate a keypair and emit it."""
        issued = self.generate()
        logger.info(f"Generated account {issued.account_address} (key {issued.redacted_private_key})")
        self.emit(issued)
        return issued
