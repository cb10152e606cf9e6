"""boto3 session, client and loader construction from endpoint settings."""

import logging
from typing import Optional

import boto3
from botocore.config import Config

from .loaders.base import BaseLoader
from .loaders.http_loader import HttpLoader
from .loaders.table_loader import TableLoader
from .models.migration import EndpointConfig, Protocol

logger = logging.getLogger(__name__)


def botocore_config(endpoint: EndpointConfig) -> Config:
    return Config(
        retries={"max_attempts": endpoint.retry_config.get("max_retries", 3) + 1, "mode": "standard"},
        connect_timeout=min(endpoint.timeout, 10),
        read_timeout=endpoint.timeout,
    )


def create_session(endpoint: EndpointConfig) -> boto3.session.Session:
    """Create a boto3 session, using static credentials when both keys are configured."""
    if endpoint.has_static_credentials:
        return boto3.session.Session(
            aws_access_key_id=endpoint.access_key,
            aws_secret_access_key=endpoint.secret_key,
            region_name=endpoint.region,
        )
    return boto3.session.Session(region_name=endpoint.region)


def dynamodb_client(endpoint: EndpointConfig, session: Optional[boto3.session.Session] = None):
    session = session or create_session(endpoint)
    return session.client(
        "dynamodb",
        endpoint_url=endpoint.endpoint,
        config=botocore_config(endpoint),
    )


def dynamodb_resource(endpoint: EndpointConfig, session: Optional[boto3.session.Session] = None):
    session = session or create_session(endpoint)
    return session.resource(
        "dynamodb",
        endpoint_url=endpoint.endpoint,
        config=botocore_config(endpoint),
    )


def create_loader(endpoint: EndpointConfig, dry_run: bool = False) -> BaseLoader:
    """Create the destination loader for the configured protocol."""
    if endpoint.protocol == Protocol.HTTP:
        logger.info(f"Writing to {endpoint.endpoint} over HTTP")
        return HttpLoader(
            endpoint=endpoint.endpoint,
            dry_run=dry_run,
            timeout=endpoint.timeout,
            retry_config=endpoint.retry_config,
        )

    logger.info(f"Writing to {endpoint.endpoint or endpoint.region} through the SDK")
    session = create_session(endpoint)
    return TableLoader(
        client=dynamodb_client(endpoint, session),
        resource=dynamodb_resource(endpoint, session),
        dry_run=dry_run,
    )
