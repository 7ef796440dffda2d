from __future__ import annotations

import argparse
import asyncio
from typing import Any, Callable, Sequence

from sellytics_admin.config import ConfigError, ConsoleConfig
from sellytics_admin.controllers import CollectionController, MutationIntent, MutationOutcome, ReceiptSearchController
from sellytics_admin.controllers.mutations import Delete, SetStatus, Toggle, always_confirm
from sellytics_admin.entities import ENTITY_KINDS
from sellytics_admin.errors import ConsoleError
from sellytics_admin.notifications import NotificationCenter
from sellytics_admin.session import read_store_scope
from sellytics_admin.store import HttpStore, RemoteStore
from sellytics_admin.table_printer import print_table

RECEIPT_COLUMNS = [
    ("index", "#"),
    ("receipt_id", "Receipt ID"),
    ("customer_name", "Customer"),
    ("device_id", "Device ID"),
    ("product_name", "Product Name"),
    ("supplier_name", "Supplier Name"),
    ("amount", "Sales Amount"),
    ("returned", "Returned"),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sellytics-admin", description="Sellytics administrative console")
    parser.add_argument("--env-file", default=None, help="Optional .env file with SELLYTICS_* settings")
    kinds = parser.add_subparsers(dest="kind", required=True)

    for name, entity in ENTITY_KINDS.items():
        kind = kinds.add_parser(name, help=f"Manage {name}")
        actions = kind.add_subparsers(dest="action", required=True)
        listing = actions.add_parser("list", help=f"List {name}")
        listing.add_argument("--query", default="", help="Case-insensitive local filter")
        if entity.allow_delete:
            delete = actions.add_parser("delete", help=f"Delete one {entity.noun}")
            delete.add_argument("item_id")
            delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
        toggle = actions.add_parser("toggle", help=f"Flip the {entity.status_field} of one {entity.noun}")
        toggle.add_argument("item_id")
        toggle.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
        if entity.status_options:
            set_status = actions.add_parser("set-status", help=f"Set the {entity.status_field} of one {entity.noun}")
            set_status.add_argument("item_id")
            set_status.add_argument("value", choices=[str(option) for option in entity.status_options])
            set_status.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    receipts = kinds.add_parser("receipts", help="Look up receipts by device id")
    receipt_actions = receipts.add_subparsers(dest="action", required=True)
    search = receipt_actions.add_parser("search", help="Search receipts in the current store")
    search.add_argument("device_id")
    search.add_argument("--returned", type=int, nargs="*", default=[], metavar="INDEX", help="Mark result rows as returned")
    search.add_argument("--remove", type=int, nargs="*", default=[], metavar="INDEX", help="Drop result rows from the list")
    return parser


def _prompt_confirmation(input_fn: Callable[[str], str], assume_yes: bool) -> Callable[[MutationIntent], bool]:
    if assume_yes:
        return always_confirm

    def confirm(intent: MutationIntent) -> bool:
        answer = input_fn(f"{intent.prompt} [y/N] ")
        return answer.strip().lower() in {"y", "yes"}

    return confirm


def _resolve_id(controller: CollectionController, raw: str) -> Any:
    key = controller.entity.key_field
    for item in controller.items:
        if str(item.get(key)) == raw:
            return item.get(key)
    return raw


def _report_outcome(outcome: MutationOutcome, echo: Callable[[str], None]) -> int:
    if outcome.committed:
        echo(f"[success] {outcome.item_id}: {outcome.status.value}")
        return 0
    if outcome.error is not None:
        echo(f"[error] {outcome.error.message} (trace_id={outcome.error.trace_id})")
        return 1
    echo(f"[{outcome.status.value}] {outcome.item_id}")
    return 0


async def _run_collection(args: argparse.Namespace, store: RemoteStore, input_fn: Callable[[str], str], echo: Callable[[str], None]) -> int:
    entity = ENTITY_KINDS[args.kind]
    controller = CollectionController(store, entity, notifications=NotificationCenter())
    await controller.load()
    if controller.error is not None:
        echo(f"[error] {controller.error.message}")
        return 1

    if args.action == "list":
        columns = [(column, column.replace("_", " ").title()) for column in entity.columns]
        print_table(entity.name.title(), controller.filtered(args.query), columns, empty_message=f"No {entity.name} found.", echo=echo)
        return 0

    item_id = _resolve_id(controller, args.item_id)
    confirm = _prompt_confirmation(input_fn, args.yes)
    if args.action == "delete":
        change: Delete | Toggle | SetStatus = Delete()
    elif args.action == "toggle":
        change = Toggle()
    else:
        change = SetStatus(args.value)
    outcome = await controller.request_mutation(item_id, change, confirm)
    return _report_outcome(outcome, echo)


async def _run_receipts(args: argparse.Namespace, store: RemoteStore, config: ConsoleConfig, echo: Callable[[str], None]) -> int:
    controller = ReceiptSearchController(store, read_store_scope(config.session_path), supplier_field=config.supplier_field)
    await controller.search(args.device_id)
    if controller.error is not None:
        echo(f"[error] {controller.error.message}")
        return 1
    for index in args.returned:
        controller.toggle_returned(index)
    for index in sorted(set(args.remove), reverse=True):
        controller.remove_row(index)
    rows = [
        {**record.model_dump(), "index": idx, "amount": record.display_amount}
        for idx, record in enumerate(controller.records)
    ]
    print_table(f"Receipts for {args.device_id}", rows, RECEIPT_COLUMNS, echo=echo)
    return 0


async def run(
    args: argparse.Namespace,
    *,
    config: ConsoleConfig,
    store: RemoteStore | None = None,
    input_fn: Callable[[str], str] = input,
    echo: Callable[[str], None] = print,
) -> int:
    owned = store is None
    active_store: Any = store if store is not None else HttpStore(config)
    try:
        if args.kind == "receipts":
            return await _run_receipts(args, active_store, config, echo)
        return await _run_collection(args, active_store, input_fn, echo)
    finally:
        if owned:
            await active_store.aclose()


def main(
    argv: Sequence[str] | None = None,
    *,
    store: RemoteStore | None = None,
    config: ConsoleConfig | None = None,
    input_fn: Callable[[str], str] = input,
    echo: Callable[[str], None] = print,
) -> int:
    args = build_parser().parse_args(argv)
    try:
        resolved = config or ConsoleConfig.from_env(args.env_file)
    except ConfigError as exc:
        echo(f"[config-error] {exc}")
        return 2
    try:
        return asyncio.run(run(args, config=resolved, store=store, input_fn=input_fn, echo=echo))
    except ConsoleError as exc:
        echo(f"[error] {exc.message}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
