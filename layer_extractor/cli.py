"""CLI mode for batch extraction with YAML config."""

import logging
from pathlib import Path

import yaml

from layer_extractor.core.config import LOG_FORMAT, language_display_name
from layer_extractor.core.layer_converter import LayerConverter
from layer_extractor.core.layer_fetcher import fetch_catalog
from layer_extractor.core.layer_spec import expand_layer_spec
from layer_extractor.models.settings import ExtractorSettings

logger = logging.getLogger(__name__)


def load_config(config_path: str) -> tuple[dict, Path]:
    """
    Load YAML configuration file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Tuple of (configuration dictionary, config directory path)

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_file, encoding="utf-8") as f:
        config = yaml.safe_load(f)

    # Return config and its directory for relative path resolution
    config_dir = config_file.parent.resolve()

    return config, config_dir


def validate_config(config: dict) -> None:
    """
    Validate configuration using Pydantic schema validation.

    Args:
        config: Configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    from pydantic import ValidationError

    from layer_extractor.models.schema import ExtractorConfiguration

    if not isinstance(config, dict):
        raise ValueError("Configuration must be a mapping")

    try:
        ExtractorConfiguration.model_validate(config)
    except ValidationError as e:
        # Convert Pydantic errors to ValueError for consistency
        raise ValueError(f"Configuration validation failed:\n{e}") from e

    # Layer spec syntax and name tables (business logic Pydantic can't handle)
    expand_layer_spec(str(config["layers"]))

    for catalog in config["catalogs"]:
        if not catalog["layer_names"]:
            raise ValueError(f"Catalog '{catalog['language']}' has an empty layer name table")


def load_settings(config_path: str) -> ExtractorSettings:
    """Load, validate and resolve a configuration file."""
    config, config_dir = load_config(config_path)
    validate_config(config)
    return ExtractorSettings.from_dict(config, config_dir=config_dir)


def prepare_output_directories(settings: ExtractorSettings) -> int:
    """
    Create every catalog output directory.

    Returns:
        Number of directories that could not be created
    """
    failures = 0

    for catalog in settings.catalogs:
        try:
            catalog.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Error creating output directory: {catalog.output_dir}: {e}")
            failures += 1

    return failures


def fetch_layers(settings: ExtractorSettings) -> int:
    """
    Fetch every catalog's layers.

    Returns:
        Number of layers that failed
    """
    layer_ids = settings.layer_ids
    failures = 0

    for catalog in settings.catalogs:
        logger.info(f"Getting JSON layer data for {language_display_name(catalog.language)} layers")
        results = fetch_catalog(catalog, layer_ids, timeout=settings.request_timeout, log=logger)
        failures += sum(1 for r in results if not r.ok)

    return failures


def convert_layers(settings: ExtractorSettings) -> int:
    """
    Convert every catalog's output directory to CSV.

    Returns:
        Number of files that failed
    """
    converter = LayerConverter(escaping=settings.csv_escaping, log=logger)
    failures = 0

    for catalog in settings.catalogs:
        logger.info(f"Converting JSON layer data for {language_display_name(catalog.language)} layers to CSV")
        results = converter.convert_directory(catalog.output_dir)
        failures += sum(1 for r in results if not r.ok)

    return failures


def attach_log_file(log_file: Path) -> logging.Handler:
    """Send log entries to a file in addition to the console."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)
    return handler


def run_cli(config_path: str, fetch: bool = True, convert: bool = True) -> int:
    """
    Run CLI mode with config file.

    Per-layer and per-file errors are logged and do not fail the run.

    Args:
        config_path: Path to YAML configuration file
        fetch: Download layers
        convert: Convert downloaded layers to CSV

    Returns:
        Exit code (0 for success, 1 for error)
    """
    file_handler = None
    try:
        logger.info(f"Loading configuration from: {config_path}")
        settings = load_settings(config_path)

        if settings.file_logging:
            file_handler = attach_log_file(settings.log_file)

        if settings.prompt_for_run:
            input("Press enter to start...")

        logger.info("Configuration:")
        logger.info(f"  Layers: {settings.layers} ({len(settings.layer_ids)} per catalog)")
        for catalog in settings.catalogs:
            logger.info(f"  {language_display_name(catalog.language)}: {catalog.base_url} -> {catalog.output_dir}")

        directory_failures = prepare_output_directories(settings)

        fetch_failures = fetch_layers(settings) if fetch else 0
        convert_failures = convert_layers(settings) if convert else 0

        if directory_failures or fetch_failures or convert_failures:
            logger.warning(
                f"Finished with {directory_failures} failed directory(ies), {fetch_failures} failed layer(s) "
                f"and {convert_failures} failed file(s); see log"
            )
        else:
            logger.info("All layers extracted successfully")

        if settings.prompt_for_run:
            input("Press enter to close...")
        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except (ValueError, yaml.YAMLError) as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1
    finally:
        if file_handler is not None:
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()
