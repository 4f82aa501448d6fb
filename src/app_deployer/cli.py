#!/usr/bin/env python3
"""
Command-line interface for the App Deployer system.
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

import boto3

from app_deployer.config.loader import DeploymentConfigLoader, load_default_config
from app_deployer.config.naming import ResourceNamingService
from app_deployer.exceptions import ConfigurationError, TemplateValidationError
from app_deployer.orchestration.deployment_orchestrator import DeploymentOrchestrator
from app_deployer.templates.template_engine import TemplateEngine, TemplateOptions
from app_deployer.types import DeploymentConfig


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Deploy simple web applications to AWS with CloudFormation"
    )

    # General options
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    # Options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        "-c",
        help="Path to the deployment configuration file (default: search deploy.yml, deploy.json, ...)"
    )
    common.add_argument(
        "--environment",
        "-e",
        help="Environment name used for resource naming (e.g. dev, staging, production)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Deploy command
    deploy_parser = subparsers.add_parser("deploy", parents=[common], help="Deploy the application")
    deploy_parser.add_argument(
        "--region",
        help="AWS region to use (default: from the configuration)"
    )
    deploy_parser.add_argument(
        "--max-wait",
        type=int,
        default=1800,
        help="Maximum seconds to wait for the stack operation (default: 1800)"
    )
    deploy_parser.add_argument(
        "--poll-interval",
        type=int,
        default=10,
        help="Seconds between stack status checks (default: 10)"
    )

    # Template command
    template_parser = subparsers.add_parser(
        "template", parents=[common], help="Print the generated CloudFormation template"
    )
    template_parser.add_argument(
        "--minify",
        action="store_true",
        help="Print the template without whitespace"
    )
    template_parser.add_argument(
        "--output",
        "-o",
        help="Write the template to a file instead of stdout"
    )

    # Names command
    names_parser = subparsers.add_parser("names", parents=[common], help="Print the generated resource names")
    names_parser.add_argument(
        "--existing",
        help="Comma-separated list of existing resource names to check for conflicts"
    )

    # Validate command
    subparsers.add_parser("validate", parents=[common], help="Validate the configuration file")

    return parser.parse_args(args)


def load_config(args: argparse.Namespace) -> DeploymentConfig:
    """Load the configuration named on the command line, or from the default locations."""
    if args.config:
        return DeploymentConfigLoader().load(args.config)
    return load_default_config()


def deploy_command(args: argparse.Namespace) -> int:
    """Handle the deploy command."""
    logger = logging.getLogger("app_deployer.cli")
    config = load_config(args)

    if config.aws.profile:
        logger.info(f"Using AWS profile {config.aws.profile}")
        boto3.setup_default_session(profile_name=config.aws.profile)

    orchestrator = DeploymentOrchestrator(
        region_name=args.region or config.aws.region,
        poll_interval=args.poll_interval,
        max_wait_seconds=args.max_wait
    )
    result = orchestrator.deploy(config, environment=args.environment)
    print(json.dumps(result.to_dict(), indent=2, default=str))

    if not result.success:
        for error in result.errors:
            logger.error(f"Deployment failed: {error.message}")
        return 1

    for endpoint in result.endpoints:
        logger.info(f"{endpoint.description}: {endpoint.url}")
    return 0


def template_command(args: argparse.Namespace) -> int:
    """Handle the template command."""
    config = load_config(args)
    template = TemplateEngine().generate_template(
        config,
        options=TemplateOptions(minify=args.minify, validate=True),
        environment=args.environment
    )

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(template)
        logging.getLogger("app_deployer.cli").info(f"Wrote template to {args.output}")
    else:
        print(template)
    return 0


def names_command(args: argparse.Namespace) -> int:
    """Handle the names command."""
    config = load_config(args)
    naming_service = ResourceNamingService()
    names = naming_service.generate_resource_names(config, args.environment)
    print(json.dumps(names.to_dict(), indent=2))

    if args.existing:
        existing = [name.strip() for name in args.existing.split(",") if name.strip()]
        conflicts = naming_service.check_naming_conflicts(names, existing)
        if conflicts:
            logger = logging.getLogger("app_deployer.cli")
            for conflict in conflicts:
                logger.error(f"Naming conflict: {conflict}")
            return 1
    return 0


def validate_command(args: argparse.Namespace) -> int:
    """Handle the validate command."""
    config = load_config(args)
    logging.getLogger("app_deployer.cli").info(
        f"Configuration for {config.application.name} ({config.application.type}) is valid"
    )
    return 0


COMMANDS = {
    "deploy": deploy_command,
    "template": template_command,
    "names": names_command,
    "validate": validate_command,
}


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parsed_args = parse_args(args)
    setup_logging(parsed_args.verbose)
    logger = logging.getLogger("app_deployer.cli")

    command = COMMANDS.get(parsed_args.command)
    if command is None:
        print("No command specified. Use --help for usage information.")
        return 1

    try:
        return command(parsed_args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except TemplateValidationError as e:
        logger.error(f"Template validation error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
