"""Main application entry point."""

import argparse
import logging
import sys

from layer_extractor.core.config import ESCAPING_LEGACY, ESCAPING_MODES, LOG_FORMAT


def setup_logging(verbose: bool = False):
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
        ],
    )


def _run_configs(args, fetch: bool, convert: bool) -> int:
    """Process one or more config files sequentially."""
    from layer_extractor.cli import run_cli

    config_files = args.config if isinstance(args.config, list) else [args.config]
    total_files = len(config_files)
    failed_files = []
    successful_files = []

    for idx, config_path in enumerate(config_files, 1):
        if total_files > 1:
            logging.info(f"{'=' * 80}")
            logging.info(f"Processing config {idx}/{total_files}: {config_path}")
            logging.info(f"{'=' * 80}")

        try:
            exit_code = run_cli(config_path, fetch=fetch, convert=convert)

            if exit_code == 0:
                successful_files.append(config_path)
                if total_files > 1:
                    logging.info(f"✓ Successfully processed: {config_path}")
            else:
                failed_files.append(config_path)
                logging.error(f"✗ Failed to process: {config_path}")

                if args.stop_on_error:
                    logging.error("Stopping due to --stop-on-error flag")
                    break

        except KeyboardInterrupt:
            logging.warning(f"✗ Interrupted while processing: {config_path}")
            failed_files.append(config_path)
            break

    if total_files > 1:
        logging.info(f"{'=' * 80}")
        logging.info("Processing Summary")
        logging.info(f"{'=' * 80}")
        logging.info(f"Total configs: {total_files}")
        logging.info(f"Successful:    {len(successful_files)}")
        logging.info(f"Failed:        {len(failed_files)}")

        for config in failed_files:
            logging.info(f"  ✗ {config}")

    return 1 if failed_files else 0


def cmd_run(args):
    """Handle run subcommand - fetch every layer, then convert to CSV."""
    setup_logging(args.verbose)
    return _run_configs(args, fetch=True, convert=True)


def cmd_fetch(args):
    """Handle fetch subcommand - download layers only."""
    setup_logging(args.verbose)
    return _run_configs(args, fetch=True, convert=False)


def cmd_convert(args):
    """Handle convert subcommand - convert already downloaded layer directories."""
    setup_logging(args.verbose)
    from layer_extractor.core.layer_converter import LayerConverter

    converter = LayerConverter(escaping=args.escaping)
    failures = 0
    for directory in args.directory:
        results = converter.convert_directory(directory)
        failures += sum(1 for r in results if not r.ok)

    return 1 if failures else 0


def cmd_list_catalogs(args):
    """Handle list-catalogs subcommand."""
    from layer_extractor.cli import load_settings
    from layer_extractor.core.config import language_display_name
    from layer_extractor.core.layer_fetcher import build_query_url

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Layers: {settings.layers}")
    print()

    for catalog in settings.catalogs:
        print(f"  {catalog.language:4} - {language_display_name(catalog.language)}")
        print(f"         Output: {catalog.output_dir}")
        print(f"         CSV:    {catalog.csv_dir}")
        for layer_id in settings.layer_ids:
            try:
                name = catalog.layer_name(layer_id)
            except LookupError:
                name = "<missing name>"
            print(f"         {layer_id:3} {name:30} {build_query_url(catalog.base_url, layer_id)}")
        print()

    return 0


def cmd_schema(args):
    """Handle schema subcommand - print configuration schema documentation."""
    import yaml

    from layer_extractor.models.schema import ExtractorConfiguration

    schema_text = yaml.safe_dump(ExtractorConfiguration.model_json_schema(), sort_keys=False, allow_unicode=True)

    if args.yaml:
        print(schema_text)
        return 0

    from rich.console import Console
    from rich.syntax import Syntax

    console = Console()
    console.print(Syntax(schema_text, "yaml"))
    return 0


def main():
    """Main application entry point."""
    parser = argparse.ArgumentParser(
        description="Layer Extractor - Download map-service layers and flatten them to CSV",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run subcommand
    run_parser = subparsers.add_parser("run", help="Download layers and convert them to CSV")
    run_parser.add_argument("config", nargs="+", help="YAML configuration file(s) to process")
    run_parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    run_parser.add_argument(
        "--stop-on-error", action="store_true", help="Stop processing remaining configs if one fails"
    )
    run_parser.set_defaults(func=cmd_run)

    # Fetch subcommand
    fetch_parser = subparsers.add_parser("fetch", help="Download layers without converting")
    fetch_parser.add_argument("config", nargs="+", help="YAML configuration file(s) to process")
    fetch_parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    fetch_parser.add_argument(
        "--stop-on-error", action="store_true", help="Stop processing remaining configs if one fails"
    )
    fetch_parser.set_defaults(func=cmd_fetch)

    # Convert subcommand
    convert_parser = subparsers.add_parser("convert", help="Convert downloaded layer directories to CSV")
    convert_parser.add_argument("directory", nargs="+", help="Directories holding layer JSON files")
    convert_parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    convert_parser.add_argument(
        "--escaping", choices=ESCAPING_MODES, default=ESCAPING_LEGACY, help="CSV escaping mode"
    )
    convert_parser.set_defaults(func=cmd_convert)

    # List catalogs subcommand
    list_parser = subparsers.add_parser("list-catalogs", help="List catalogs and layer URLs from a config file")
    list_parser.add_argument("config", help="YAML configuration file")
    list_parser.set_defaults(func=cmd_list_catalogs)

    # Schema subcommand
    schema_parser = subparsers.add_parser("schema", help="Print configuration schema documentation")
    schema_parser.add_argument(
        "--yaml", action="store_true", help="Output raw YAML schema instead of formatted documentation"
    )
    schema_parser.set_defaults(func=cmd_schema)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
