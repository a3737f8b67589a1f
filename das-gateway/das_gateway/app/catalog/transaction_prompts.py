from __future__ import annotations

from pydantic import Field

from das_gateway.app.catalog.base import InputShape, PromptDefinition, PromptMessage


class StorageBytesArgs(InputShape):
    byte_count: str = Field(alias="bytes", description="Number of bytes to store")


class SignatureArgs(InputShape):
    signature: str = Field(description="Transaction signature")


def _user(text: str) -> list[PromptMessage]:
    return [PromptMessage(role="user", text=text)]


def _storage_deposit(args: StorageBytesArgs) -> list[PromptMessage]:
    return _user(
        f"Calculate the SOL amount needed to store {args.byte_count} bytes of data on Solana "
        "using getMinimumBalanceForRentExemption."
    )


def _minimum_storage(_: None) -> list[PromptMessage]:
    return _user(
        "Calculate the amount of SOL needed to store 0 bytes of data on Solana using "
        "getMinimumBalanceForRentExemption & present it to the user as the minimum cost "
        "for storing any data on Solana."
    )


def _why_failed(args: SignatureArgs) -> list[PromptMessage]:
    return _user(
        f"Look up the transaction with signature {args.signature} and inspect its logs "
        "to figure out why it failed."
    )


def _transaction_cost(args: SignatureArgs) -> list[PromptMessage]:
    return _user(
        f"Calculate the network fee for the transaction with signature {args.signature} "
        "by fetching it and inspecting the 'fee' field in 'meta'. Base fee is 0.000005 sol "
        "per signature (also provided as array at the end). So priority fee is "
        "fee - (numSignatures * 0.000005). Please provide the base fee and the priority fee."
    )


def _what_happened(args: SignatureArgs) -> list[PromptMessage]:
    return _user(
        f"Look up the transaction with signature {args.signature} and inspect its logs "
        "& instructions to figure out what happened."
    )


def build_transaction_prompts() -> list[PromptDefinition]:
    return [
        PromptDefinition(
            name="calculate-storage-deposit",
            description="Calculate storage deposit for a specified number of bytes",
            render=_storage_deposit,
            argument_shape=StorageBytesArgs,
        ),
        PromptDefinition(
            name="minimum-amount-of-sol-for-storage",
            description="Calculate the minimum amount of SOL needed for storing 0 bytes on-chain",
            render=_minimum_storage,
        ),
        PromptDefinition(
            name="why-did-my-transaction-fail",
            description="Look up the given transaction and inspect its logs to figure out why it failed",
            render=_why_failed,
            argument_shape=SignatureArgs,
        ),
        PromptDefinition(
            name="how-much-did-this-transaction-cost",
            description="Fetch the transaction by signature, and break down cost & priority fees",
            render=_transaction_cost,
            argument_shape=SignatureArgs,
        ),
        PromptDefinition(
            name="what-happened-in-transaction",
            description=(
                "Look up the given transaction and inspect its logs & instructions "
                "to figure out what happened"
            ),
            render=_what_happened,
            argument_shape=SignatureArgs,
        ),
    ]
