"""Lambda handler serving the blog relay endpoint."""

import json
import os
from datetime import UTC, datetime, timedelta
from typing import Any

import boto3

from .cache import PostCacheStore, create_storage
from .config import Config, RelayConfig
from .logging_config import create_execution_logger, setup_structured_logging
from .models import FeedState
from .normalize import PostNormalizer
from .rss import FeedFetcher, FeedParser
from .service import BlogFeedService

setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

RELAY_PATH = "/api/blog"
METRICS_NAMESPACE = "Blog-Feed-Relay"

# Reused across warm invocations so the memory backend actually caches
_storage_cache: dict[str, Any] = {}


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Answer `GET /api/blog` with the normalized recent posts.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    method, path = _request_line(event)
    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        http_method=method,
        path=path,
    )

    if path.rstrip("/") != RELAY_PATH:
        main_logger.log_execution_end(success=False, status_code=404)
        return _response(404, {"error": "Not found"})
    if method != "GET":
        main_logger.log_execution_end(success=False, status_code=405)
        return _response(405, {"error": "Method not allowed"}, {"Allow": "GET"})

    metrics = {
        "posts_returned": 0,
        "cache_hit": False,
        "fetch_success": False,
    }
    aws_region = "us-east-1"

    try:
        config = Config()
        aws_region = config.aws_region
        main_logger.info("Configuration initialized", feed_url=config.feed_url)

        service = build_service(config.get_relay_config(), execution_id)
        result = service.load()

        metrics["cache_hit"] = result.from_cache
        metrics["fetch_success"] = result.state == FeedState.SUCCESS
        metrics["posts_returned"] = len(result.posts)
        main_logger.log_metrics(metrics)
        send_cloudwatch_metrics(metrics, aws_region, execution_id)

        if result.state != FeedState.SUCCESS:
            main_logger.log_execution_end(success=False, metrics=metrics)
            return _response(
                500,
                {"error": "Failed to fetch blog posts", "details": result.error},
            )

        main_logger.log_execution_end(success=True, metrics=metrics)
        return _response(200, {"posts": [post.to_dict() for post in result.posts]})

    except Exception as e:
        main_logger.error(
            f"Critical error in Lambda handler: {e}",
            error_type=type(e).__name__,
            error=str(e),
        )
        send_cloudwatch_metrics(metrics, aws_region, execution_id)
        main_logger.log_execution_end(success=False, metrics=metrics)
        return _response(
            500,
            {"error": "Failed to fetch blog posts", "details": type(e).__name__},
        )


def build_service(
    relay_config: RelayConfig, execution_id: str | None = None
) -> BlogFeedService:
    """Wire the pipeline components from configuration."""
    feed_config = relay_config.feed
    cache_config = relay_config.cache

    storage_key = f"{cache_config.backend}:{cache_config.file_path}:{cache_config.dynamodb_table}"
    if storage_key not in _storage_cache:
        _storage_cache[storage_key] = create_storage(
            cache_config.backend,
            file_path=cache_config.file_path,
            table_name=cache_config.dynamodb_table,
            aws_region=cache_config.aws_region,
        )

    cache = PostCacheStore(
        _storage_cache[storage_key],
        ttl=timedelta(seconds=cache_config.ttl_seconds),
        execution_id=execution_id,
    )
    return BlogFeedService(
        feed_url=feed_config.url,
        fetcher=FeedFetcher(timeout=feed_config.timeout, execution_id=execution_id),
        parser=FeedParser(max_items=feed_config.max_posts, execution_id=execution_id),
        normalizer=PostNormalizer(
            locale=feed_config.locale,
            timezone=feed_config.timezone,
            max_posts=feed_config.max_posts,
        ),
        cache=cache,
        fallback_links=relay_config.fallback_links,
        execution_id=execution_id,
    )


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing invocation metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        metrics_logger.info("Sending metrics to CloudWatch", metrics=metrics)
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        fetch_success = bool(metrics["fetch_success"])
        metric_data = [
            {
                "MetricName": "PostsReturned",
                "Value": metrics["posts_returned"],
                "Unit": "Count",
            },
            {
                "MetricName": "CacheHit",
                "Value": 1 if metrics["cache_hit"] else 0,
                "Unit": "Count",
            },
            {
                "MetricName": "FetchSuccess",
                "Value": 1 if fetch_success else 0,
                "Unit": "Count",
            },
            {
                "MetricName": "FetchFailure",
                "Value": 0 if fetch_success else 1,
                "Unit": "Count",
            },
        ]

        cloudwatch.put_metric_data(Namespace=METRICS_NAMESPACE, MetricData=metric_data)

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=METRICS_NAMESPACE,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
        # Metrics failure must not change the response


def _request_line(event: dict[str, Any]) -> tuple[str, str]:
    # REST API (v1) and HTTP API (v2) payloads carry these in different places
    http = event.get("requestContext", {}).get("http", {})
    method = event.get("httpMethod") or http.get("method") or "GET"
    path = event.get("path") or event.get("rawPath") or http.get("path") or RELAY_PATH
    return method.upper(), path


def _response(
    status_code: int, body: dict[str, Any], headers: dict[str, str] | None = None
) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Cache-Control": "no-store",
            **(headers or {}),
        },
        "body": json.dumps(body, ensure_ascii=False),
    }
