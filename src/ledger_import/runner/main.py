"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

import yaml

from ..config import Config, create_default_config, load_config
from ..parsing.dates import DateFormat
from ..pipeline import EmptyInputError, PipelineController, PipelineError, PipelineStep
from ..schemas import Account, Category, ImportContext, ImportType
from ..services.transformer import AccountSource, AmountMode

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ledger-import",
        description="Import delimited bank and ledger exports into typed records",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # init-config command
    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        help="Where to write the config (default: the --config path)",
    )

    # inspect command
    inspect_parser = subparsers.add_parser(
        "inspect", help="Show detected columns and date layout for a file"
    )
    inspect_parser.add_argument("file", type=Path, help="Delimited file to inspect")
    _add_file_options(inspect_parser)

    # run command
    run_parser = subparsers.add_parser("run", help="Run the full import pipeline headless")
    run_parser.add_argument("file", type=Path, help="Delimited file to import")
    _add_file_options(run_parser)
    run_parser.add_argument(
        "--date-format",
        choices=[fmt.value for fmt in DateFormat],
        help="Override the detected date layout",
    )
    run_parser.add_argument(
        "--amount-mode",
        choices=[mode.value for mode in AmountMode],
        help="Override the amount mode (transactions only)",
    )
    run_parser.add_argument(
        "--account-id",
        type=str,
        help="Book every transaction to this existing account id",
    )
    run_parser.add_argument(
        "--context",
        type=Path,
        help="YAML file with existing accounts and categories",
    )
    run_parser.add_argument(
        "--output",
        type=Path,
        help="Write the publish result JSON here instead of stdout",
    )

    return parser


def _add_file_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--type",
        dest="import_type",
        choices=[t.value for t in ImportType],
        default=ImportType.TRANSACTIONS.value,
        help="Kind of records in the file (default: transactions)",
    )
    parser.add_argument(
        "--delimiter",
        type=str,
        help="Field delimiter (default: from config)",
    )


def _parse_category(data: dict) -> Category:
    return Category(
        id=str(data["id"]),
        name=data["name"],
        classification=data.get("classification", "expense"),
        color=data.get("color", ""),
        icon=data.get("icon", ""),
        sub_categories=[_parse_category(sub) for sub in data.get("sub_categories", [])],
    )


def load_context(config: Config, context_path: Path | None) -> ImportContext:
    """Build the ImportContext from an optional YAML file of accounts and categories.

    Expected layout:
        accounts:
          - {id: acc-1, name: Main, type: Checking, currency: EUR}
        categories:
          - {id: cat-1, name: Food, sub_categories: [{id: cat-2, name: Groceries}]}
    """
    if context_path is None:
        return ImportContext.from_config(config)

    with open(context_path) as f:
        data = yaml.safe_load(f) or {}

    accounts = [
        Account(
            id=str(acc["id"]),
            name=acc["name"],
            type=acc.get("type", config.defaults.new_account_type),
            balance=Decimal(str(acc.get("balance", "0"))),
            currency=acc.get("currency", config.defaults.default_currency),
            status=acc.get("status", "open"),
        )
        for acc in data.get("accounts", [])
    ]
    categories = [_parse_category(cat) for cat in data.get("categories", [])]
    return ImportContext.from_config(config, accounts=accounts, categories=categories)


def _read_text(path: Path) -> str:
    # utf-8-sig drops a byte order mark written by spreadsheet exports
    return path.read_text(encoding="utf-8-sig")


def cmd_init_config(config_path: Path) -> int:
    """Write the default configuration file."""
    if config_path.exists():
        print(f"❌ Config already exists: {config_path}")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote default config to {config_path}")
    return 0


def cmd_inspect(config: Config, file: Path, import_type: str, delimiter: str | None) -> int:
    """Show headers, auto-mapped columns and the detected date layout."""
    controller = PipelineController(import_type, config=config)
    try:
        if delimiter:
            controller.set_delimiter(delimiter)
        controller.load_text(_read_text(file), file.name)
        controller.advance()
    except (OSError, ValueError, EmptyInputError) as e:
        print(f"❌ Cannot read {file}: {e}")
        return 1

    state = controller.state
    print(f"\n📄 {file.name}: {len(state.headers)} columns, {len(state.rows)} rows")
    print(f"  Headers: {', '.join(state.headers)}")

    print("\n🔗 Column mapping")
    for spec in controller.schema.fields:
        header = state.column_map.get(spec.key)
        marker = "*" if spec.required else " "
        if header:
            score = state.column_scores.get(spec.key, 0.0)
            print(f"  {marker} {spec.label:<28} ← {header} ({score:.0f})")
        else:
            print(f"  {marker} {spec.label:<28} ← (unmapped)")

    detection = state.date_detection
    if detection:
        note = " (ambiguous)" if detection.ambiguous else ""
        print(f"\n📅 Date layout: {detection.format.value}{note}")
    print(f"💱 Amount mode: {state.amount_mode.value}")
    return 0


def cmd_run(
    config: Config,
    file: Path,
    import_type: str,
    delimiter: str | None = None,
    date_format: str | None = None,
    amount_mode: str | None = None,
    account_id: str | None = None,
    context_path: Path | None = None,
    output: Path | None = None,
) -> int:
    """Run every pipeline step with the seeded defaults and publish."""
    try:
        context = load_context(config, context_path)
    except (OSError, KeyError, yaml.YAMLError) as e:
        print(f"❌ Failed to load context: {e}")
        return 1

    controller = PipelineController(import_type, context=context, config=config)
    try:
        if delimiter:
            controller.set_delimiter(delimiter)
        controller.load_text(_read_text(file), file.name)
        controller.advance()

        # Configure step: overrides must land before the transform runs
        if date_format:
            controller.set_date_format(date_format)
        if amount_mode:
            controller.set_amount_mode(amount_mode)
        if account_id:
            controller.set_account_source(AccountSource.SINGLE, account_id)

        controller.go_to(PipelineStep.CONFIRM)
        result = controller.publish()
    except (OSError, ValueError, PipelineError) as e:
        print(f"❌ Import failed: {e}")
        return 1

    state = controller.state
    print(f"\n📥 {file.name} ({result.import_type.value})", file=sys.stderr)
    print(f"  Rows read:       {len(state.rows)}", file=sys.stderr)
    print(f"  Rows with errors:{len(state.errors):>5}", file=sys.stderr)
    print(f"  Records:         {len(result.records)}", file=sys.stderr)
    print(f"  New accounts:    {len(result.new_accounts)}", file=sys.stderr)

    for index, fields in sorted(state.errors.items()):
        details = "; ".join(f"{key}: {message}" for key, message in fields.items())
        logger.debug("Row %d: %s", index, details)

    payload = json.dumps(result.to_dict(), indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload + "\n")
        print(f"\n✓ Wrote {output}", file=sys.stderr)
    else:
        print(payload)
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.path or parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    errors = config.validate()
    if errors:
        print("❌ Invalid configuration:")
        for error in errors:
            print(f"   - {error}")
        return 1

    # Route to command
    if parsed.command == "inspect":
        return cmd_inspect(config, parsed.file, parsed.import_type, parsed.delimiter)
    elif parsed.command == "run":
        return cmd_run(
            config,
            parsed.file,
            parsed.import_type,
            delimiter=parsed.delimiter,
            date_format=parsed.date_format,
            amount_mode=parsed.amount_mode,
            account_id=parsed.account_id,
            context_path=parsed.context,
            output=parsed.output,
        )
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
