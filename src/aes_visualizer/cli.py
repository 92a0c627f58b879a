"""Command-line interface for the AES-128 step visualizer.

Usage:
    aes-visualizer run --pt <hex32> --key <hex32> --verbose
    aes-visualizer run --text "YELLOWSUBMARINES" --key-text "THISISASECRETKEY" --export out.json
    aes-visualizer keys --key <hex32>
    aes-visualizer decrypt out.json
    aes-visualizer vectors
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import click
import structlog

from . import DEFAULT_KEY_HEX, DEFAULT_PT_HEX, __version__
from .config import VisualizerConfig
from .errors import AESVisualizerError
from .export import export_to_json, fit_text_block
from .key_schedule import key_expansion
from .pipeline import EncryptionPipeline
from .reference import (
    FIPS_197_TEST_VECTORS,
    aes128_encrypt,
    decrypt_export,
    load_export_document,
    verify_ciphertext,
)
from .trace import TraceRecorder, print_header, print_result, print_snapshot, print_subheader
from .utils import bytes_to_hex, format_state_grid, hex_to_bytes

log = structlog.get_logger()


def _stderr_logger(*args) -> structlog.PrintLogger:
    # Resolve sys.stderr per call so redirected streams are honoured
    return structlog.PrintLogger(file=sys.stderr)


def _configure_logging(verbose: bool) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        logger_factory=_stderr_logger,
    )


def _parse_block(hex_value: str | None, text_value: str | None, default_hex: str,
                 name: str, config: VisualizerConfig) -> tuple[bytes, str | None]:
    """Resolve a 16-byte block from --<name> hex or --<name>-text options."""
    if hex_value is not None and text_value is not None:
        click.echo(f"Error: give either hex or text for the {name}, not both", err=True)
        sys.exit(1)

    if text_value is not None:
        try:
            block = fit_text_block(
                text_value, pad=config.pad_char, encoding=config.text_encoding,
            )
        except AESVisualizerError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        return block, block.decode(config.text_encoding)

    hex_str = default_hex if hex_value is None else hex_value
    try:
        block = hex_to_bytes(hex_str)
    except ValueError as e:
        click.echo(f"Error: Invalid {name} hex: {e}", err=True)
        sys.exit(1)
    if len(block) != 16:
        click.echo(
            f"Error: {name.capitalize()} must be 32 hex chars (16 bytes), got {len(hex_str)} chars",
            err=True,
        )
        sys.exit(1)
    return block, None


@click.group()
@click.version_option(version=__version__, prog_name="aes-visualizer")
def main() -> None:
    """AES-128 step-by-step encryption visualizer.

    Encrypts one block with a from-scratch AES-128 and shows every
    intermediate state together with the round keys.
    """
    pass


@main.command()
@click.option("--pt", type=str, default=None,
              help="Plaintext as 32 hex chars (default: FIPS-197 C.1 plaintext)")
@click.option("--key", type=str, default=None,
              help="Key as 32 hex chars (default: FIPS-197 C.1 key)")
@click.option("--text", "pt_text", type=str, default=None,
              help="Plaintext as raw text, padded/truncated to 16 characters")
@click.option("--key-text", type=str, default=None,
              help="Key as raw text, padded/truncated to 16 characters")
@click.option("--full-rounds", is_flag=True,
              help="Record every step of rounds 2-9 instead of one summary snapshot")
@click.option("--uppercase", is_flag=True, help="Show hex bytes in uppercase")
@click.option("--trace", "trace_path", type=click.Path(dir_okay=False), default=None,
              help="Write a JSON Lines trace to FILE")
@click.option("--export", "export_path", type=click.Path(dir_okay=False), default=None,
              help="Write the export document (JSON) to FILE")
@click.option("--verbose", "-v", is_flag=True, help="Print one compact line per step")
def run(
    pt: str | None,
    key: str | None,
    pt_text: str | None,
    key_text: str | None,
    full_rounds: bool,
    uppercase: bool,
    trace_path: str | None,
    export_path: str | None,
    verbose: bool,
) -> None:
    """Encrypt one block and show every intermediate state."""
    _configure_logging(verbose)
    config = VisualizerConfig(
        snapshot_detail="full" if full_rounds else "compressed",
        uppercase_hex=uppercase,
    )

    plaintext, plaintext_raw = _parse_block(pt, pt_text, DEFAULT_PT_HEX, "plaintext", config)
    key_bytes, key_raw = _parse_block(key, key_text, DEFAULT_KEY_HEX, "key", config)

    print_header("AES-128 Encryption Walkthrough")
    click.echo(f"Key:       {bytes_to_hex(key_bytes, uppercase)}")
    click.echo(f"Plaintext: {bytes_to_hex(plaintext, uppercase)}")
    click.echo(f"Snapshots: {config.snapshot_detail}")

    trace_file: TextIO | None = None
    if trace_path:
        try:
            trace_file = open(trace_path, "w")
        except OSError as e:
            click.echo(f"Error: Cannot open trace file: {e}", err=True)
            sys.exit(1)

    tracer = TraceRecorder(verbose=verbose, trace_file=trace_file)

    try:
        result = EncryptionPipeline(config, tracer).encrypt(plaintext, key_bytes)
    finally:
        if trace_file:
            trace_file.close()

    for index, snapshot in enumerate(result.snapshots):
        print_snapshot(snapshot, result.round_key_for(index), uppercase=uppercase)

    passed = verify_ciphertext(result.ciphertext, key_bytes, plaintext)
    print_result(
        bytes_to_hex(result.ciphertext, uppercase),
        result.ciphertext_base64,
        len(result.snapshots),
        passed,
    )

    if export_path:
        path = export_to_json(result, export_path, plaintext_raw, key_raw, config)
        click.echo(f"Export document written to {path}")

    if not passed:
        expected = aes128_encrypt(key_bytes, plaintext)
        log.error("ciphertext mismatch", expected=expected.hex(), got=result.ciphertext_hex)
        sys.exit(1)


@main.command()
@click.option("--key", type=str, default=None,
              help="Key as 32 hex chars (default: FIPS-197 C.1 key)")
@click.option("--key-text", type=str, default=None,
              help="Key as raw text, padded/truncated to 16 characters")
@click.option("--uppercase", is_flag=True, help="Show hex bytes in uppercase")
def keys(key: str | None, key_text: str | None, uppercase: bool) -> None:
    """Show the 11 round keys derived from a key."""
    config = VisualizerConfig(uppercase_hex=uppercase)
    key_bytes, _ = _parse_block(key, key_text, DEFAULT_KEY_HEX, "key", config)

    schedule = key_expansion(key_bytes)
    print_header(f"AES-128 Key Schedule: {bytes_to_hex(key_bytes, uppercase)}")
    for round_num, round_key_hex in enumerate(schedule.to_hex()):
        print_subheader(f"Round key {round_num}: {round_key_hex}")
        click.echo(format_state_grid(schedule.frozen(round_num), uppercase=uppercase))


@main.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@click.option("--hex", "as_hex", is_flag=True, help="Print the plaintext as hex")
def decrypt(document: str, as_hex: bool) -> None:
    """Decrypt an exported JSON document with PyCryptodome."""
    _configure_logging(False)
    try:
        data = load_export_document(document)
        plaintext = decrypt_export(data)
    except AESVisualizerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Algorithm: {data.get('algorithm', 'AES-128-ECB')}")
    if as_hex:
        click.echo(f"Plaintext (hex): {plaintext.hex()}")
    else:
        click.echo(f"Plaintext: {plaintext.decode('utf-8', errors='replace')}")


@main.command()
@click.option("--verbose", "-v", is_flag=True, help="Show every vector")
def vectors(verbose: bool) -> None:
    """Check the pipeline against the FIPS-197 known-answer vectors."""
    pipeline = EncryptionPipeline()
    passed = 0

    click.echo("Running FIPS-197 KAT tests...")
    for i, vec in enumerate(FIPS_197_TEST_VECTORS):
        result = pipeline.encrypt(vec["plaintext"], vec["key"])
        if result.ciphertext == vec["ciphertext"]:
            passed += 1
            if verbose:
                click.echo(f"  Test {i+1} ({vec['name']}): PASS")
        else:
            click.echo(
                f"  Test {i+1} ({vec['name']}): FAIL - expected "
                f"{vec['ciphertext'].hex()}, got {result.ciphertext_hex}"
            )

    total = len(FIPS_197_TEST_VECTORS)
    click.echo(f"FIPS-197 tests: {passed}/{total} passed")
    if passed != total:
        sys.exit(1)


if __name__ == "__main__":
    main()
