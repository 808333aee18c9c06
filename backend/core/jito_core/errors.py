"""Exceptions raised while assembling and submitting Jito bundles."""

from __future__ import annotations


class BundleError(RuntimeError):
    """Base class for every bundle failure reported back to a caller."""

    status_code: int = 500


class ConfigurationError(BundleError):
    """Raised when required settings are absent or malformed."""

    def __init__(
        self,
        missing: list[str] | tuple[str, ...] = (),
        invalid: list[str] | tuple[str, ...] = (),
    ) -> None:
        self.missing = list(missing)
        self.invalid = list(invalid)
        if self.missing:
            message = f"Server configuration missing. Please check {', '.join(self.missing + self.invalid)} in .env"
        else:
            message = f"Server configuration invalid. Please check {', '.join(self.invalid)} in .env"
        super().__init__(message)


class CredentialError(BundleError):
    """Raised when the signing key material cannot be parsed."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Invalid AUTH_KEYPAIR_PATH format. Must be a valid JSON array of numbers."
        )


class UpstreamAPIError(BundleError):
    """Raised when the relay or ledger RPC answers with a non-success status."""

    status_code = 502

    def __init__(self, message: str, body: str | None = None) -> None:
        super().__init__(message)
        self.body = body


class TipAccountError(UpstreamAPIError):
    """Raised when no tip account can be resolved from the relay."""


class BundleRejectedError(BundleError):
    """Raised when the relay declines a bundle. The relay message is kept verbatim."""

    status_code = 502

    def __init__(self, relay_message: str) -> None:
        super().__init__(f"Bundle submission failed: {relay_message}")
        self.relay_message = relay_message


class TransactionDecodeError(BundleError):
    """Raised when a base64 transaction blob does not deserialize."""

    status_code = 400


class BundleLimitError(BundleError):
    """Raised when a bundle would exceed its transaction limit."""

    status_code = 400


class FeeTransferError(BundleError):
    """Raised when the asset fee transfer cannot be built."""

    status_code = 400


class InvalidWalletError(BundleError):
    """Raised when a wallet address is not a valid public key."""

    status_code = 400

    def __init__(self, wallet: str | None = None) -> None:
        super().__init__("Invalid wallet address")
        self.wallet = wallet
