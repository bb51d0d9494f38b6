"""Client side: session state, pay-on-402 flow and markdown rendering."""

from .api import ChatRequestError, PayingChatClient
from .config import ClientSettings, get_client_settings
from .markdown import render_markdown, to_terminal
from .payer import InvalidAddress, PaymentFlowError, TokenTransferPayer
from .session import ChatSession, SessionBusy
from .wallet import KeypairWallet, SolanaLedger, TransferLedger, Wallet

__all__ = [
    "ChatRequestError",
    "PayingChatClient",
    "ClientSettings",
    "get_client_settings",
    "render_markdown",
    "to_terminal",
    "InvalidAddress",
    "PaymentFlowError",
    "TokenTransferPayer",
    "ChatSession",
    "SessionBusy",
    "KeypairWallet",
    "SolanaLedger",
    "TransferLedger",
    "Wallet",
]
