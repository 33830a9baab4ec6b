"""
Health checks for memoire application.

Reports on the record store, the media bucket and the environment, for the
health page and for readiness/liveness probes.
"""

import json
import platform
import time
from typing import Any

import duckdb
import streamlit as st

from . import __version__
from .config import get_config, get_environment
from .error_handling import MemoireError
from .logging_config import get_logger
from .services.records import get_record_store
from .services.storage import get_storage_service

logger = get_logger(__name__)

REQUIRED_ENV_VARS = ["GOOGLE_CLOUD_PROJECT", "GCS_MEDIA_BUCKET"]


def check_database_health() -> dict[str, Any]:
    """Check that the record store answers queries."""
    try:
        count = get_record_store().count_records()
        return {
            "status": "healthy",
            "message": "Record store reachable",
            "timestamp": time.time(),
            "records": count,
        }
    except (MemoireError, duckdb.Error) as e:
        logger.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "message": f"Record store failed: {e}", "timestamp": time.time()}


def check_storage_health() -> dict[str, Any]:
    """Check that the media bucket exists and is reachable."""
    try:
        service = get_storage_service()
    except MemoireError as e:
        logger.error("storage_health_check_failed", error=str(e))
        return {"status": "unhealthy", "message": f"Storage unavailable: {e}", "timestamp": time.time()}

    if not service.check_bucket_exists():
        return {
            "status": "unhealthy",
            "message": f"Bucket not reachable: {service.media_bucket_name}",
            "timestamp": time.time(),
            "bucket": service.media_bucket_name,
        }
    return {
        "status": "healthy",
        "message": f"Storage connection successful to bucket: {service.media_bucket_name}",
        "timestamp": time.time(),
        "bucket": service.media_bucket_name,
    }


def check_environment_health() -> dict[str, Any]:
    """Check required configuration."""
    config = get_config()
    missing = [key for key in REQUIRED_ENV_VARS if not config.get(key)]
    if missing:
        return {
            "status": "unhealthy",
            "message": f"Missing environment variables: {', '.join(missing)}",
            "timestamp": time.time(),
            "missing_vars": missing,
        }
    return {
        "status": "healthy",
        "message": "Environment configuration is valid",
        "timestamp": time.time(),
        "config": {"environment": get_environment(), "media_bucket": config.get("GCS_MEDIA_BUCKET")},
    }


def get_application_info() -> dict[str, Any]:
    return {
        "name": "memoire",
        "version": __version__,
        "environment": get_environment(),
        "timestamp": time.time(),
        "uptime": time.time() - st.session_state.get("app_start_time", time.time()),
        "python_version": platform.python_version(),
    }


def perform_health_check() -> dict[str, Any]:
    """Run every check and summarise."""
    logger.info("health_check_started")
    start_time = time.time()

    if "app_start_time" not in st.session_state:
        st.session_state.app_start_time = time.time()

    checks = {
        "database": check_database_health(),
        "storage": check_storage_health(),
        "environment": check_environment_health(),
    }
    unhealthy_services = [name for name, result in checks.items() if result["status"] != "healthy"]

    health_response: dict[str, Any] = {
        "status": "unhealthy" if unhealthy_services else "healthy",
        "timestamp": time.time(),
        "duration_ms": round((time.time() - start_time) * 1000, 2),
        "application": get_application_info(),
        "checks": checks,
    }
    if unhealthy_services:
        health_response["unhealthy_services"] = unhealthy_services

    logger.info(
        "health_check_completed",
        status=health_response["status"],
        duration_ms=health_response["duration_ms"],
        unhealthy_services=unhealthy_services,
    )
    return health_response


def check_readiness() -> dict[str, Any]:
    """Readiness probe: storage is skipped in development."""
    checks = {"database": check_database_health(), "environment": check_environment_health()}
    if not get_config().is_development():
        checks["storage"] = check_storage_health()

    is_ready = all(check["status"] == "healthy" for check in checks.values())
    return {"status": "ready" if is_ready else "not_ready", "timestamp": time.time(), "checks": checks}


def check_liveness() -> dict[str, Any]:
    return {
        "status": "alive",
        "timestamp": time.time(),
        "uptime": time.time() - st.session_state.get("app_start_time", time.time()),
    }


def render_health_page() -> None:
    """Render the health check page."""
    st.set_page_config(page_title="Health Check - Mémoire", page_icon="🏥", layout="wide")
    st.title("🏥 Health Check")
    st.markdown("---")

    with st.spinner("Performing health check..."):
        health_data = perform_health_check()

    if health_data["status"] == "healthy":
        st.success(f"✅ Application is healthy (checked in {health_data['duration_ms']}ms)")
    else:
        st.error(f"❌ Application is unhealthy (checked in {health_data['duration_ms']}ms)")
        st.warning(f"Unhealthy services: {', '.join(health_data['unhealthy_services'])}")

    app_info = health_data["application"]
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Version", app_info["version"])
    with col2:
        st.metric("Environment", app_info["environment"])
    with col3:
        st.metric("Uptime", f"{app_info['uptime']:.1f}s")

    for service, check_result in health_data["checks"].items():
        with st.expander(f"{service.title()} Service", expanded=check_result["status"] != "healthy"):
            if check_result["status"] == "healthy":
                st.success(f"✅ {check_result['message']}")
            else:
                st.error(f"❌ {check_result['message']}")
            st.json(check_result)


def main() -> None:
    """Dispatch on ``?endpoint=`` and ``?format=``."""
    endpoint = st.query_params.get("endpoint", "health")
    format_type = st.query_params.get("format", "html")

    if endpoint == "readiness":
        health_data = check_readiness()
    elif endpoint == "liveness":
        health_data = check_liveness()
    else:
        health_data = None

    if format_type == "json":
        st.text(json.dumps(health_data or perform_health_check(), indent=2))
    elif health_data is not None:
        st.json(health_data)
    else:
        render_health_page()
