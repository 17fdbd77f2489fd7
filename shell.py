import logging
import shlex
from dataclasses import dataclass
from typing import List, Optional

from prompt_toolkit import PromptSession, prompt
from prompt_toolkit.history import InMemoryHistory
from tabulate import tabulate

from attachments import UploadArchive
from config import settings
from credentials import UserDirectory
from database import InventoryWorkbook
from errors import LedgerError
from ledger import InventoryLedger
from models import (
    Identity, InventoryRecord, IssueLine, IssueRequest, LedgerResult, RecordKey,
    Scope, StorageLine, StorageRequest,
)
from strings import (
    AUDIT_FIELDS, COMPONENT_ID, HELP_TEXT, ISSUE_FIELDS, ISSUE_NO, NAME, PART_NO,
    STATUS, STORAGE_FIELDS, STORAGE_NO, TYPE,
)

SHORT_HEADERS = ["ID", "Type", "Transaction", "Part No", "Name", "Status"]


@dataclass
class ShellContext:
    ledger: InventoryLedger
    users: UserDirectory
    archive: UploadArchive
    identity: Optional[Identity] = None


def short_rows(records: List[InventoryRecord]) -> list:
    return [[
        r.get(COMPONENT_ID), r.get(TYPE), r.get(ISSUE_NO) or r.get(STORAGE_NO),
        r.get(PART_NO), r.get(NAME), r.get(STATUS)
    ] for r in records]


def print_result(result: LedgerResult) -> None:
    if result.success:
        print(result.message)
    else:
        print(f"Failed ({result.kind}): {result.message}")


def ask(label: str) -> Optional[str]:
    value = input(f"{label}: ").strip()
    return value or None


def read_issue_request(submitted_by: Optional[str]) -> IssueRequest:
    request = IssueRequest(
        issue_no=ask("Issue No"),
        issue_date=ask("Issue Date"),
        request_text=ask("Request Text"),
        issue_to=ask("Issued To"),
        issue_for=ask("Issue For"),
        system_manager=ask("System Manager"),
        submitted_by=submitted_by,
    )
    print("Enter line items (blank Part No to finish).")
    while True:
        part_no = ask("Part No")
        if not part_no:
            break
        request.components.append(IssueLine(
            part_no=part_no,
            part_description=ask("Part Description"),
            serial_no=ask("Serial No"),
            sno_so=ask("S.No as per SO"),
            manufacturer=ask("Manufacturer"),
            quality_grade=ask("Quality Grade"),
            sub_system=ask("Sub System"),
            quantity_each=ask("Quantity Each"),
            total_quantity=ask("Total Quantity"),
            so_no=ask("SO No"),
            pdf=ask("SO PDF path (optional)"),
        ))
    return request


def read_storage_request(submitted_by: Optional[str]) -> StorageRequest:
    request = StorageRequest(
        storage_no=ask("Storage No"),
        storage_date=ask("Storage Date"),
        so_number=ask("SO Number"),
        system_manager=ask("System Manager"),
        submitted_by=submitted_by,
    )
    print("Enter line items (blank Part No to finish).")
    while True:
        part_no = ask("Part No")
        if not part_no:
            break
        request.components.append(StorageLine(
            part_no=part_no,
            part_description=ask("Part Description"),
            serial_no=ask("Serial No"),
            sno_po=ask("S.No as per PO"),
            grade=ask("Grade"),
            quantity=ask("Storage Quantity"),
            storage_temp=ask("Storage Temperature"),
            relative_humidity=ask("Relative Humidity"),
            storage_data=ask("Storage Data"),
            delivery_date=ask("Delivery Date"),
        ))
    return request


def key_arg(args: dict) -> Optional[RecordKey]:
    """The -id argument as a RecordKey, or None when it is missing or has no value."""
    value = args.get("-id")
    if not isinstance(value, str) or not value.strip():
        return None
    return RecordKey.parse(value)


def require_admin(ctx: ShellContext) -> bool:
    if ctx.identity is None or ctx.identity.role != Scope.ADMIN.value:
        print("Admin login required.")
        return False
    return True


def handle_command(ctx: ShellContext, command: str):
    try:
        tokens = shlex.split(command)
        if not tokens:
            return

        cmd = tokens[0].lower()
        args = parse_args(tokens[1:])
        submitter = ctx.identity.name if ctx.identity else None

        if cmd in ("help", "h"):
            print(HELP_TEXT)

        elif cmd == "f":
            print("Issue fields:")
            for name in ISSUE_FIELDS:
                print(f"- {name}")
            print("Storage fields:")
            for name in STORAGE_FIELDS:
                print(f"- {name}")
            print("Added on approval/rejection:")
            for name in AUDIT_FIELDS:
                print(f"- {name}")

        elif cmd == "l":
            result = ctx.ledger.list_inventory()
            if not result.success:
                print_result(result)
            elif result.records:
                print(tabulate(short_rows(result.records), headers=SHORT_HEADERS, tablefmt="github"))
            else:
                print("No components found.")

        elif cmd == "g":
            key = key_arg(args)
            if key is None:
                print("Please specify the component with -id")
                return
            result = ctx.ledger.get_component(key)
            if result.success:
                print(tabulate([[k, v] for k, v in result.record.items() if v is not None],
                               headers=["Field", "Value"], tablefmt="github"))
            else:
                print_result(result)

        elif cmd == "p":
            result = ctx.ledger.list_pending()
            if not result.success:
                print_result(result)
            elif result.records:
                print(tabulate(short_rows(result.records), headers=SHORT_HEADERS, tablefmt="github"))
            else:
                print("No pending requests.")

        elif cmd == "i":
            print_result(ctx.ledger.submit_issue(read_issue_request(submitter)))

        elif cmd == "st":
            print_result(ctx.ledger.submit_storage(read_storage_request(submitter)))

        elif cmd == "u":
            key = key_arg(args)
            if key is None:
                print("Please specify the transaction with -id")
                return
            if args.get("-t", "issue") == "storage":
                request = read_storage_request(submitter)
            else:
                request = read_issue_request(submitter)
            print_result(ctx.ledger.update(key, request))

        elif cmd == "d":
            key = key_arg(args)
            if key is None:
                print("Please specify what to delete with -id")
                return
            confirm = input(f"Delete every record matching {key}? [y/N]: ").strip().lower()
            if confirm != 'y':
                print("Cancelled.")
                return
            print_result(ctx.ledger.delete(key))

        elif cmd == "ap":
            if require_admin(ctx):
                key = key_arg(args)
                if key is None:
                    print("Please specify the request with -id")
                    return
                result = ctx.ledger.approve(key, ctx.identity, args.get("-s"))
                print_result(result)

        elif cmd == "rj":
            if require_admin(ctx):
                key = key_arg(args)
                if key is None:
                    print("Please specify the request with -id")
                    return
                result = ctx.ledger.reject(key, args.get("-m"))
                print_result(result)

        elif cmd == "login":
            scope = Scope.ADMIN if "-admin" in args else Scope.USER
            password = prompt("Password: ", is_password=True)
            identity = ctx.users.authenticate(args.get("-u", ""), password, scope)
            if identity:
                ctx.identity = identity
                print(f"Logged in as {identity.name} ({identity.role}).")
            else:
                print("Invalid username or password.")

        elif cmd == "signup":
            scope = Scope.ADMIN if "-admin" in args else Scope.USER
            password = prompt("Password: ", is_password=True)
            ok, message = ctx.users.register(args.get("-u", ""), password, scope)
            print(message if ok else f"Signup failed: {message}")

        elif cmd == "logout":
            ctx.identity = None
            print("Logged out.")

        elif cmd == "who":
            if ctx.identity:
                print(f"{ctx.identity.name} ({ctx.identity.role})")
            else:
                print("Not logged in.")

        elif cmd == "fl":
            files = ctx.archive.list_files()
            if files:
                table = [[f.name, f.scientist, f.description, f.size, f.upload_date] for f in files]
                headers = ["Name", "Scientist", "Description", "Size", "Uploaded"]
                print(tabulate(table, headers=headers, tablefmt="github"))
            else:
                print("No archived files.")

        elif cmd == "fu":
            path = args.get("-p")
            if not path:
                print("Please specify the file with -p")
                return
            entry = ctx.archive.upload(path, path, args.get("-n", "Unknown"), args.get("-m", ""))
            print(f"File uploaded as {entry.name}")

        elif cmd == "fr":
            ctx.archive.rename(args["-o"], args["-n"])
            print("Renamed.")

        elif cmd == "fd":
            ctx.archive.delete(args["-n"])
            print("Deleted.")

        elif cmd == "x":
            print("Exiting.")
            return "exit"

        else:
            print("Unknown command. Type 'h' for help.")

    except LedgerError as e:
        print(f"Error: {e.message}")
    except Exception as e:
        print(f"Error: {str(e)}")


def parse_args(tokens: list) -> dict:
    args = {}
    i = 0
    while i < len(tokens):
        if tokens[i].startswith("-") and not tokens[i].startswith("--") and i + 1 < len(tokens) \
                and not tokens[i + 1].startswith("-"):
            args[tokens[i]] = tokens[i + 1]
            i += 2
        else:
            args[tokens[i]] = True
            i += 1
    return args


def build_context() -> ShellContext:
    archive = UploadArchive(settings.UPLOAD_DIR)
    ledger = InventoryLedger(InventoryWorkbook(settings.INVENTORY_FILE), attachments=archive)
    return ShellContext(ledger=ledger, users=UserDirectory(), archive=archive)


def repl():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    session = PromptSession(history=InMemoryHistory())
    print("Inventory Ledger Shell. Type 'h' for help.")
    ctx = build_context()
    while True:
        try:
            lines = session.prompt(">>> ").strip().splitlines()
            for line in lines:
                line = line.strip()
                if not line:
                    continue
                if handle_command(ctx, line) == "exit":
                    return
        except KeyboardInterrupt:
            continue
        except EOFError:
            break


if __name__ == "__main__":
    repl()
