from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

import structlog
from dotenv import load_dotenv

from ampel_mapper.config.loader import (
    get_default_attestation_types,
    get_default_rule,
    get_include_scope_filters,
    get_log_level,
    get_output_dir,
    get_region_codes,
    get_runtime,
    get_workspace_dir,
)
from ampel_mapper.parsers.policy_parser import load_catalog, load_source_policy, load_templates
from ampel_mapper.pipeline_runner import create_runner
from ampel_mapper.transform.attestation import infer_attestation_types
from ampel_mapper.transform.mapper import from_policy
from ampel_mapper.transform.options import PolicySetOptions, TransformOptions
from ampel_mapper.transform.policyset import from_policy_with_imports
from ampel_mapper.transform.scope import DEFAULT_SCOPE_COMPILER
from ampel_mapper.utils.error_handler import MapperError, exit_with_error

COMMANDS = ("convert", "inspect")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ampel-mapper",
        description="Map governance policies to attestation verification policies",
    )
    parser.add_argument("command", choices=COMMANDS, help="Subcommand to run")
    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="",
        help="Logging level (DEBUG, INFO, WARNING, ERROR); defaults to AMPEL_MAPPER_LOG_LEVEL or config",
    )
    parser.add_argument(
        "--dotenv",
        dest="dotenv_path",
        default=".env",
        help="Path to .env file to load (default: .env)",
    )


def build_convert_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ampel-mapper convert",
        description="Convert a governance policy into a verification policy",
    )

    parser.add_argument("input_path", help="Path to the source policy (.yaml/.json)")

    parser.add_argument(
        "-o", "--output",
        dest="output_path",
        default="",
        help="Output file. Relative paths are resolved inside the workspace in workspace mode.",
    )
    parser.add_argument(
        "-w", "--workspace",
        dest="workspace_path",
        default="",
        help="Workspace directory; existing policies there are merged, keeping manual edits",
    )
    parser.add_argument(
        "--force-overwrite",
        dest="force_overwrite",
        action="store_true",
        help="Discard manual edits in an existing workspace policy",
    )
    parser.add_argument(
        "-c", "--catalog",
        dest="catalog_path",
        default="",
        help="Control catalog used to enrich tenet titles and control references",
    )
    parser.add_argument(
        "--scope-filters",
        dest="scope_filters",
        action="store_true",
        help="Prefix every tenet expression with the policy scope filter",
    )
    parser.add_argument(
        "--templates",
        dest="templates_path",
        default="",
        help="YAML mapping of template name to template string, layered over the built-ins",
    )
    parser.add_argument(
        "--rule",
        dest="rule",
        default="",
        help='Overall rule, e.g. "all(tenets)" or "any(tenets)"',
    )
    parser.add_argument(
        "--enforce",
        dest="enforce",
        type=str.upper,
        choices=["ON", "OFF"],
        default=None,
        help="Enforcement mode written to the policy metadata",
    )
    parser.add_argument(
        "--attestation-type",
        dest="attestation_types",
        action="append",
        default=[],
        help="Predicate type used when none can be inferred (repeatable)",
    )
    parser.add_argument(
        "--policyset",
        dest="policyset",
        action="store_true",
        help="Emit a policy set with the policy inline and its imports as references",
    )
    parser.add_argument("--policyset-name", dest="policyset_name", default="", help="Policy set id")
    parser.add_argument(
        "--policyset-description", dest="policyset_description", default="", help="Policy set description"
    )
    parser.add_argument(
        "--policyset-version", dest="policyset_version", default="", help="Policy set version"
    )

    _add_common_arguments(parser)
    return parser


def build_inspect_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ampel-mapper inspect",
        description="Print the attestation types a governance policy requires",
    )
    parser.add_argument("input_path", help="Path to the source policy (.yaml/.json)")
    _add_common_arguments(parser)
    return parser


def _transform_options(args: argparse.Namespace) -> TransformOptions:
    catalog = load_catalog(args.catalog_path) if args.catalog_path else None
    templates = load_templates(args.templates_path) if args.templates_path else {}

    return TransformOptions(
        catalog=catalog,
        templates=templates,
        default_attestation_types=tuple(args.attestation_types or get_default_attestation_types()),
        include_scope_filters=bool(args.scope_filters) or get_include_scope_filters(),
        default_rule=args.rule or get_default_rule(),
        enforce=args.enforce,
        runtime=get_runtime(),
        scope_compiler=DEFAULT_SCOPE_COMPILER.with_regions(get_region_codes()),
    )


def run_convert(args: argparse.Namespace) -> int:
    # Policy sets are never merged and always take the standard output path
    workspace_path = None if args.policyset else (args.workspace_path or get_workspace_dir())

    try:
        runner = create_runner(
            input_path=args.input_path,
            output_path=args.output_path,
            output_dir=get_output_dir(),
            workspace_path=workspace_path,
        )

        runner.log_plan([
            "Convert governance policy",
            "load source policy",
            "map assessment plans to tenets",
            "merge with stored policy" if runner.workspace is not None else "write output",
        ])
        runner.log_run(
            workspace=workspace_path or "-",
            policyset=bool(args.policyset),
            force_overwrite=bool(args.force_overwrite),
        )

        source = load_source_policy(args.input_path)
        options = _transform_options(args)
        runner.log_step("load", policy_id=source.id, plans=len(source.assessment_plans))

        if args.policyset:
            record = from_policy_with_imports(source, PolicySetOptions(
                name=args.policyset_name,
                description=args.policyset_description,
                version=args.policyset_version,
                transform=options,
            ))
            runner.log_step("map", policy_set=record.id, policies=len(record.policies))
        else:
            record = from_policy(source, options)
            runner.log_step("map", policy_id=record.id, tenets=len(record.tenets))

        output_file = runner.resolve_output(record.id)
        if runner.workspace is not None:
            record, _ = runner.reconcile(record, output_file, force_overwrite=bool(args.force_overwrite))

        runner.write_output(record, output_file)
    except MapperError as e:
        return exit_with_error(e, context="convert")

    return 0


def run_inspect(args: argparse.Namespace) -> int:
    try:
        source = load_source_policy(args.input_path)
    except MapperError as e:
        return exit_with_error(e, context="inspect")

    inference = infer_attestation_types(source)
    payload = {"policy_id": source.id, **inference.to_dict()}
    print(json.dumps(payload, indent=2))
    return 0


def _configure(args: argparse.Namespace) -> None:
    load_dotenv(args.dotenv_path)
    level = getattr(logging, (args.log_level or get_log_level()).upper(), logging.INFO)
    logging.basicConfig(level=level)

    # Library events go to stderr so stdout stays machine readable
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def main(argv: Optional[list[str]] = None) -> int:
    argv_list = list(argv) if argv is not None else sys.argv[1:]

    if argv_list and argv_list[0] == "convert":
        args = build_convert_parser().parse_args(argv_list[1:])
        _configure(args)
        return run_convert(args)

    if argv_list and argv_list[0] == "inspect":
        args = build_inspect_parser().parse_args(argv_list[1:])
        _configure(args)
        return run_inspect(args)

    build_parser().parse_args(argv_list)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
