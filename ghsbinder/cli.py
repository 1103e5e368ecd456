import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional

import httpx
import uvicorn

from ghsbinder.constants import CUSTOMER_CONFIGS_DIR, DASHBOARD_HOST, DASHBOARD_PORT, PDFS_DIR
from ghsbinder.exceptions import BinderError
from ghsbinder.services import MissingCredentials, Services, require_token
from ghsbinder.utils import binder
from ghsbinder.utils.store import CustomerStore

log = logging.getLogger(__name__)

Command = Callable[[Services, argparse.Namespace], Awaitable[None]]


async def _with_services(command: Command, args: argparse.Namespace) -> None:
    services = Services.from_environment()
    try:
        await command(services, args)
    finally:
        await services.aclose()


def execute(command: Command, args: argparse.Namespace) -> int:
    """Runs one command against freshly built services; returns the process exit code."""
    try:
        asyncio.run(_with_services(command, args))
    except MissingCredentials as e:
        log.error("%s", e)
        return 1
    except BinderError as e:
        log.error("Command failed: %s", e.message)
        return 1
    except httpx.HTTPError as e:
        log.error("Command failed: %s", e)
        return 1
    except (OSError, ValueError) as e:
        log.error("Command failed: %s", e)
        return 1
    return 0


async def deploy_config(services: Services, args: argparse.Namespace) -> None:
    config = services.store.load_file(Path(args.config_file))
    # The outcome is stamped into the stored configuration of the customer
    result = await services.deployer.deploy_and_record(config)
    print(f"Deployment complete: {result.url}")
    print(f"Repository: {result.repository.html_url}")
    for filename in result.skipped_documents:
        print(f"  skipped (not found): {filename}")


async def list_sites(services: Services, args: argparse.Namespace) -> None:
    print("Customer Sites:")
    for customer in services.store.summaries():
        print(f"  - {customer.name} ({customer.chemicals} chemicals) - {customer.url}")


async def delete_site(services: Services, args: argparse.Namespace) -> None:
    await services.deployer.delete_customer_site(args.slug)
    print(f"Customer site {args.slug} deleted")


async def add_chemical(services: Services, args: argparse.Namespace) -> None:
    data = json.loads(Path(args.chemical_file).read_text(encoding="utf-8"))
    change = await services.chemicals.add(args.slug, data, redeploy=args.redeploy)
    print(f'Chemical "{change.chemical.name}" added ({change.chemical.id})')
    print(f"Total chemicals: {change.total_chemicals}")


async def remove_chemical(services: Services, args: argparse.Namespace) -> None:
    change = await services.chemicals.remove(args.slug, args.chemical_id, redeploy=args.redeploy)
    print(f'Chemical "{change.chemical.name}" removed')


async def list_chemicals(services: Services, args: argparse.Namespace) -> None:
    listing = services.chemicals.list_chemicals(args.slug, args.include_inactive)
    print(f"Chemicals for {listing.customer}:")
    print(f"   Active: {listing.active}, Inactive: {listing.inactive}")
    for chemical in listing.chemicals:
        status = "active" if chemical.active else "inactive"
        print(f"   [{status}] {chemical.name} ({chemical.id})")


async def print_checklist(services: Services, args: argparse.Namespace) -> None:
    print(services.chemicals.generate_checklist(args.slug))


def deploy_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ghs-deploy", description="Manage customer binder sites.")
    commands = parser.add_subparsers(dest="command", required=True)

    deploy = commands.add_parser("deploy", help="Deploy a site from a customer configuration file")
    deploy.add_argument("config_file")
    deploy.set_defaults(handler=deploy_config)

    listing = commands.add_parser("list", help="List customer sites")
    listing.set_defaults(handler=list_sites)

    delete = commands.add_parser("delete", help="Delete a customer's repository and configuration")
    delete.add_argument("slug")
    delete.set_defaults(handler=delete_site)
    return parser


def chemicals_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ghs-chemicals", description="Manage customer chemicals.")
    commands = parser.add_subparsers(dest="command", required=True)

    add = commands.add_parser("add", help="Add a chemical from a JSON file")
    add.add_argument("slug")
    add.add_argument("chemical_file")
    add.set_defaults(handler=add_chemical)

    remove = commands.add_parser("remove", help="Deactivate a chemical")
    remove.add_argument("slug")
    remove.add_argument("chemical_id")
    remove.set_defaults(handler=remove_chemical)

    for command in (add, remove):
        command.add_argument("--no-redeploy", dest="redeploy", action="store_false",
                             help="Save the change without republishing the site")

    listing = commands.add_parser("list", help="List chemicals")
    listing.add_argument("slug")
    listing.add_argument("--include-inactive", action="store_true")
    listing.set_defaults(handler=list_chemicals)

    checklist = commands.add_parser("checklist", help="Print the upload checklist")
    checklist.add_argument("slug")
    checklist.set_defaults(handler=print_checklist)
    return parser


def deploy_main(argv: Optional[list[str]] = None) -> None:
    args = deploy_parser().parse_args(argv)
    sys.exit(execute(args.handler, args))


def chemicals_main(argv: Optional[list[str]] = None) -> None:
    args = chemicals_parser().parse_args(argv)
    sys.exit(execute(args.handler, args))


def binder_main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="ghs-binder-pdf",
                                     description="Merge a customer's PDFs into one binder.")
    parser.add_argument("slug")
    parser.add_argument("--configs-dir", type=Path, default=CUSTOMER_CONFIGS_DIR)
    parser.add_argument("--pdfs-dir", type=Path, default=PDFS_DIR)
    args = parser.parse_args(argv)

    try:
        config = CustomerStore(args.configs_dir).load(args.slug)
        path, assembled = binder.write(config, args.pdfs_dir)
    except BinderError as e:
        log.error("Command failed: %s", e.message)
        sys.exit(1)
    except (OSError, ValueError) as e:
        log.error("Command failed: %s", e)
        sys.exit(1)

    print(f"Complete binder written to {path} ({assembled.pages} pages)")
    for filename in assembled.missing:
        print(f"  missing: {filename}")


def dashboard_main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="ghs-dashboard", description="Run the management dashboard.")
    parser.add_argument("--host", default=DASHBOARD_HOST)
    parser.add_argument("--port", type=int, default=DASHBOARD_PORT)
    args = parser.parse_args(argv)

    try:
        require_token()
    except MissingCredentials as e:
        log.error("%s", e)
        sys.exit(1)

    log.info("GHS Binder Dashboard running on http://%s:%d", args.host, args.port)
    uvicorn.run("ghsbinder:app", host=args.host, port=args.port)
