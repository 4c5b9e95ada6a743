"""
dApp Errors

Exception taxonomy for the off-chain engine. Errors the user must see are
raised; ReadFailure and EnrichmentFailure are recovered locally and only
logged by the components that produce them.
"""


class DappError(Exception):
    """Base exception for dApp engine errors."""

    pass


class ProviderUnavailable(DappError):
    """No wallet provider detected."""

    pass


class UserRejected(DappError):
    """The user declined a connect or transaction request in the provider."""

    pass


class ProviderError(DappError):
    """Any other provider failure while connecting."""

    pass


class ValidationError(DappError):
    """Required transaction input missing or malformed."""

    pass


class TransactionInProgress(ValidationError):
    """The same operation is already waiting for confirmation."""

    pass


class ReadFailure(DappError):
    """A non-mutating batch call failed."""

    pass


class TransactionFailure(DappError):
    """A mutating call or its confirmation failed."""

    pass


class EnrichmentFailure(DappError):
    """Secondary metadata fetch failed."""

    pass


# JSON-RPC / EIP-1193 code for "user rejected request"
USER_REJECTED_CODE = 4001


def is_user_rejection(exc: BaseException) -> bool:
    """
    Check whether a provider exception means the user declined the request

    Handles web3 RPC errors carrying an EIP-1193 error payload as well as
    plain exceptions whose message mentions the rejection.
    """
    if isinstance(exc, UserRejected):
        return True

    rpc_response = getattr(exc, "rpc_response", None)
    if isinstance(rpc_response, dict):
        error = rpc_response.get("error") or {}
        if isinstance(error, dict) and error.get("code") == USER_REJECTED_CODE:
            return True

    for arg in getattr(exc, "args", ()):
        if isinstance(arg, dict) and arg.get("code") == USER_REJECTED_CODE:
            return True

    return "user rejected" in str(exc).lower() or "user denied" in str(exc).lower()
