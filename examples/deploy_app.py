#!/usr/bin/env python3
"""
Example script for deploying a fullstack application to a per-environment stack.
"""
import argparse
import logging
import sys

from app_deployer.config.naming import create_naming_service
from app_deployer.config.validator import validate_and_normalize_config
from app_deployer.exceptions import ConfigurationError
from app_deployer.orchestration.deployment_orchestrator import DeploymentOrchestrator


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()]
    )


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Example script for deploying a fullstack application with an environment override"
    )

    parser.add_argument(
        "--name",
        required=True,
        help="Application name"
    )
    parser.add_argument(
        "--environment",
        default="dev",
        help="Environment to deploy to (default: dev)"
    )
    parser.add_argument(
        "--frontend-dir",
        default="./dist",
        help="Directory containing the built frontend"
    )
    parser.add_argument(
        "--backend-dir",
        default="./api",
        help="Directory containing the Lambda function code"
    )
    parser.add_argument(
        "--region",
        default="us-east-1",
        help="AWS region to deploy to"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    return parser.parse_args()


def main() -> int:
    """Main entry point for the example script."""
    args = parse_args()
    setup_logging(args.verbose)

    logger = logging.getLogger(__name__)
    logger.info("Starting example deployment")

    try:
        config = validate_and_normalize_config({
            "application": {"name": args.name, "type": "fullstack"},
            "aws": {"region": args.region},
            "frontend": {"source_dir": args.frontend_dir},
            "backend": {"source_dir": args.backend_dir, "handler": "index.handler"},
        })
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    # Larger Lambda functions outside of dev
    overrides = {} if args.environment == "dev" else {"backend": {"memory": 1024}}
    config = create_naming_service().resolve_environment_config(config, args.environment, overrides)

    result = DeploymentOrchestrator(region_name=args.region).deploy(config, environment=args.environment)

    if not result.success:
        for error in result.errors:
            logger.error(f"Deployment failed: {error.message}")
        return 1

    for endpoint in result.endpoints:
        logger.info(f"{endpoint.description}: {endpoint.url}")
    for resource in result.resources:
        logger.info(f"{resource.type} {resource.name} ({resource.status})")

    return 0


if __name__ == "__main__":
    sys.exit(main())
