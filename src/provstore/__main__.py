# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This is the main entrypoint to run provstore."""

import argparse
import dataclasses
import json
import logging
import os
import sys
from importlib import metadata as importlib_metadata

from provstore.config.defaults import create_defaults, load_defaults
from provstore.config.storage_config import OCIStorageConfig, load_oci_storage_config
from provstore.errors import ConfigurationError, InvalidReferenceError, StorageError, UnsupportedFormatError
from provstore.formats.simple import SimpleContainerImage
from provstore.intoto import validate_intoto_statement
from provstore.intoto.errors import ValidateInTotoPayloadError
from provstore.oci.name import Digest
from provstore.storage.api import Bundle, StoreRequest
from provstore.storage.oci.storer import AttestationStorer, OCIStorerOptions, SimpleStorer

logger: logging.Logger = logging.getLogger(__name__)


def store_attestation(args: argparse.Namespace, options: OCIStorerOptions) -> int:
    """Store a signed in-toto attestation for an image."""
    artifact = Digest.parse(args.image)
    content = _read_file(args.statement)
    statement = json.loads(content)
    if not isinstance(statement, dict) or not validate_intoto_statement(statement):
        raise ValidateInTotoPayloadError("The statement is not a JSON object.")

    bundle = Bundle(
        content=content,
        signature=_read_file(args.signature),
        cert=_read_optional_file(args.cert),
        chain=_read_optional_file(args.chain),
    )
    AttestationStorer(options).store(StoreRequest(artifact=artifact, payload=statement, bundle=bundle))
    return os.EX_OK


def store_signature(args: argparse.Namespace, options: OCIStorerOptions) -> int:
    """Store a simple-signing signature for an image."""
    artifact = Digest.parse(args.image)
    payload = SimpleContainerImage.for_image(artifact)
    content = _read_file(args.payload) if args.payload else payload.to_bytes()

    bundle = Bundle(
        content=content,
        signature=_read_file(args.signature),
        cert=_read_optional_file(args.cert),
        chain=_read_optional_file(args.chain),
    )
    SimpleStorer(options).store(StoreRequest(artifact=artifact, payload=payload, bundle=bundle))
    return os.EX_OK


def perform_action(action_args: argparse.Namespace) -> None:
    """Perform the indicated action of provstore."""
    match action_args.action:
        case "dump-defaults":
            # Create the defaults.ini file in the output dir and exit.
            if not create_defaults(action_args.output_dir, os.getcwd()):
                sys.exit(os.EX_CANTCREAT)
            sys.exit(os.EX_OK)

        case "store-attestation" | "store-signature":
            try:
                options = _storer_options(action_args, load_oci_storage_config())
            except (ConfigurationError, InvalidReferenceError) as error:
                logger.error(error)
                sys.exit(os.EX_USAGE)

            action = store_attestation if action_args.action == "store-attestation" else store_signature
            try:
                sys.exit(action(action_args, options))
            except InvalidReferenceError as error:
                logger.error(error)
                sys.exit(os.EX_USAGE)
            except OSError as error:
                logger.error("Cannot read input file: %s", error)
                sys.exit(os.EX_NOINPUT)
            except (json.JSONDecodeError, UnicodeDecodeError, ValidateInTotoPayloadError) as error:
                logger.error("Invalid in-toto statement: %s", error)
                sys.exit(os.EX_DATAERR)
            except UnsupportedFormatError as error:
                logger.error(error)
                sys.exit(os.EX_UNAVAILABLE)
            except StorageError as error:
                logger.error(error)
                sys.exit(os.EX_SOFTWARE)

        case _:
            logger.error("provstore does not support command option %s.", action_args.action)
            sys.exit(os.EX_USAGE)


def main(argv: list[str] | None = None) -> None:
    """Execute provstore as a standalone command-line tool.

    Parameters
    ----------
    argv: list[str] | None
        Command-line arguments.
        If ``argv`` is ``None``, argparse automatically looks at ``sys.argv``.
        Hence, we set ``argv = None`` by default.
    """
    main_parser = argparse.ArgumentParser(prog="provstore")

    main_parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {importlib_metadata.version('provstore')}",
        help="Show provstore's version number and exit",
    )

    main_parser.add_argument(
        "-v",
        "--verbose",
        help="Run provstore with more debug logs",
        action="store_true",
    )

    main_parser.add_argument(
        "-dp",
        "--defaults-path",
        default="",
        help="The path to the defaults configuration file.",
    )

    # Add sub parsers for each action.
    sub_parser = main_parser.add_subparsers(dest="action", help="Run provstore <action> --help for help")

    attestation_parser = sub_parser.add_parser(
        name="store-attestation", description="Store a signed in-toto attestation for an image."
    )
    _add_store_arguments(attestation_parser)
    attestation_parser.add_argument(
        "--statement",
        required=True,
        type=str,
        help="The path to the in-toto statement (JSON) that was signed.",
    )
    attestation_parser.add_argument(
        "--signature",
        required=True,
        type=str,
        help="The path to the signed DSSE envelope.",
    )

    signature_parser = sub_parser.add_parser(
        name="store-signature", description="Store a simple-signing signature for an image."
    )
    _add_store_arguments(signature_parser)
    signature_parser.add_argument(
        "--signature",
        required=True,
        type=str,
        help="The path to the raw signature.",
    )
    signature_parser.add_argument(
        "--payload",
        required=False,
        type=str,
        help="The path to the signed simple-signing payload. If not set, the payload is generated from --image.",
    )

    # Dump the default values.
    dump_parser = sub_parser.add_parser(
        name="dump-defaults", description="Dumps the defaults.ini file to the output directory."
    )
    dump_parser.add_argument(
        "-o",
        "--output-dir",
        default=os.getcwd(),
        help="The output destination path for the defaults.ini file.",
    )

    args = main_parser.parse_args(argv)

    if not args.action:
        main_parser.print_help()
        sys.exit(os.EX_USAGE)

    if args.verbose:
        log_level = logging.DEBUG
        log_format = "%(asctime)s [%(name)s:%(funcName)s:%(lineno)d] [%(levelname)s] %(message)s"
    else:
        log_level = logging.INFO
        log_format = "%(asctime)s [%(levelname)s] %(message)s"

    logging.basicConfig(format=log_format, handlers=[logging.StreamHandler(sys.stderr)], force=True, level=log_level)

    # Load the default values from defaults.ini files.
    if not load_defaults(args.defaults_path):
        logger.error("Exiting because the defaults configuration could not be loaded.")
        sys.exit(os.EX_NOINPUT)

    perform_action(args)


def _add_store_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i",
        "--image",
        required=True,
        type=str,
        help="The digest reference of the signed image, e.g. registry.example.com/app@sha256:<hex>.",
    )
    parser.add_argument("--cert", required=False, type=str, help="The path to the PEM signing certificate.")
    parser.add_argument("--chain", required=False, type=str, help="The path to the PEM certificate chain.")
    parser.add_argument(
        "--format",
        required=False,
        type=str,
        help="The storage format: legacy, referrers-api or protobuf-bundle. Overrides the defaults configuration.",
    )
    parser.add_argument(
        "--repository",
        required=False,
        type=str,
        help="The repository where signed material is stored. Overrides the defaults configuration.",
    )
    parser.add_argument(
        "--insecure",
        required=False,
        action="store_true",
        help="Talk to the registry over plain HTTP.",
    )


def _storer_options(args: argparse.Namespace, config: OCIStorageConfig) -> OCIStorerOptions:
    """Return the storer options from the configuration, overridden by command-line arguments.

    Registry credentials are read from the environment.
    """
    overrides: dict[str, object] = {}
    if args.format:
        overrides["format"] = args.format
    if args.repository:
        overrides["repository"] = args.repository
    if args.insecure:
        overrides["insecure"] = True
    config = dataclasses.replace(config, **overrides)  # type: ignore[arg-type]

    return OCIStorerOptions.from_config(
        config,
        username=os.environ.get("PROVSTORE_REGISTRY_USERNAME") or None,
        password=os.environ.get("PROVSTORE_REGISTRY_PASSWORD") or None,
        token=os.environ.get("PROVSTORE_REGISTRY_TOKEN") or None,
    )


def _read_file(path: str) -> bytes:
    with open(path, "rb") as file:
        return file.read()


def _read_optional_file(path: str | None) -> bytes | None:
    return _read_file(path) if path else None


if __name__ == "__main__":
    main()
