"""Terminal chat client.

    python -m chat_client chat --keypair ~/.config/solana/id.json
    python -m chat_client fetch /api/premium-data
"""

import argparse
import asyncio
import json
import sys
import httpx

from chat_client.api import ChatRequestError, PayingChatClient
from chat_client.config import ClientSettings, get_client_settings
from chat_client.markdown import render_markdown, to_terminal
from chat_client.payer import PaymentFlowError, TokenTransferPayer
from chat_client.session import ChatSession
from chat_client.wallet import KeypairWallet, SolanaLedger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chat_client", description="Pay-per-message chat client")
    parser.add_argument("--api-url", help="Chat API base URL")
    parser.add_argument("--rpc-url", help="Solana RPC endpoint")
    parser.add_argument("--keypair", help="Solana CLI keypair file used to pay")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("chat", help="Interactive chat session")
    fetch = sub.add_parser("fetch", help="Fetch one route, paying if required")
    fetch.add_argument("path", help="Route path, e.g. /api/premium-data")
    return parser


def apply_overrides(settings: ClientSettings, args: argparse.Namespace) -> ClientSettings:
    overrides = {
        "api_url": args.api_url,
        "solana_rpc_url": args.rpc_url,
        "keypair_path": args.keypair,
    }
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


async def chat_loop(client: PayingChatClient, session: ChatSession) -> None:
    print(f"Each message costs {session.price_per_message:,} tokens. Ctrl-D to quit.")
    while True:
        try:
            text = await asyncio.to_thread(input, "> ")
        except EOFError:
            print()
            return
        if not text.strip():
            continue
        reply = await client.send_message(session, text)
        if reply is None:
            print(session.messages[-1].content)
        else:
            print(to_terminal(render_markdown(reply)))
        print(f"[spent: {session.total_spent:,}]")


async def run(args: argparse.Namespace) -> int:
    settings = apply_overrides(get_client_settings(), args)
    if not settings.keypair_path:
        print("A keypair is required to pay (--keypair or CLIENT_KEYPAIR_PATH)", file=sys.stderr)
        return 2

    ledger = SolanaLedger(settings.solana_rpc_url)
    payer = TokenTransferPayer(
        KeypairWallet.from_file(settings.keypair_path),
        ledger,
        mint=settings.token_mint,
        decimals=settings.token_decimals,
        network=settings.network,
    )
    client = PayingChatClient(settings, payer)
    try:
        if args.command == "fetch":
            try:
                data = await client.fetch(args.path)
            except (PaymentFlowError, ChatRequestError, httpx.HTTPError) as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            print(json.dumps(data, indent=2))
        else:
            session = ChatSession(
                price_per_message=settings.price_per_message,
                history_limit=settings.history_limit,
            )
            await chat_loop(client, session)
        return 0
    finally:
        await client.close()
        await ledger.close()


def main() -> None:
    args = build_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
