"""
Health check utilities for the PDF Flashcard Generator

This module reports on the components a request depends on: the completion
endpoint configuration, the upload directory, the result cache and the host.
"""
import logging
import os
import time
from typing import Dict, Any, List, Optional
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import psutil

from services.llm_service import LLMService
from services.result_cache import ResultCache

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Health status enumeration"""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class ComponentHealth:
    """Health information for a system component"""
    name: str
    status: HealthStatus
    message: str
    details: Optional[Dict[str, Any]] = None
    response_time_ms: Optional[int] = None
    last_check: Optional[str] = None


@dataclass
class SystemHealth:
    """Overall system health information"""
    status: HealthStatus
    message: str
    components: List[ComponentHealth]
    timestamp: str
    uptime_seconds: Optional[int] = None


def _now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class HealthChecker:
    """
    Health checker for the flashcard pipeline's dependencies
    """

    def __init__(
        self,
        llm_service: Optional[LLMService] = None,
        upload_directory: Optional[str] = None,
        result_cache: Optional[ResultCache] = None
    ):
        """
        Initialize health checker with system components

        Args:
            llm_service: LLM service instance
            upload_directory: Directory uploads are written to
            result_cache: Result cache instance
        """
        self.llm_service = llm_service
        self.upload_directory = Path(upload_directory) if upload_directory else None
        self.result_cache = result_cache
        self.start_time = time.time()

    async def check_system_health(self, include_details: bool = True) -> SystemHealth:
        """
        Check the health of all system components

        Args:
            include_details: Whether to include detailed component information

        Returns:
            SystemHealth object with overall status and component details
        """
        components = []

        if self.llm_service:
            components.append(self._check_llm_service())

        if self.upload_directory:
            components.append(self._check_upload_directory())

        if self.result_cache:
            components.append(self._check_result_cache())

        components.append(self._check_memory_usage())
        components.append(self._check_disk_space())

        overall_status = self._determine_overall_status(components)

        return SystemHealth(
            status=overall_status,
            message=self._get_status_message(overall_status, components),
            components=components if include_details else [],
            timestamp=_now(),
            uptime_seconds=int(time.time() - self.start_time)
        )

    def _check_llm_service(self) -> ComponentHealth:
        """The completion client only needs an API key; no request is made."""
        if not self.llm_service.is_available():
            return ComponentHealth(
                name="llm_service",
                status=HealthStatus.UNHEALTHY,
                message="LLM service is not available - missing API key",
                last_check=_now()
            )

        return ComponentHealth(
            name="llm_service",
            status=HealthStatus.HEALTHY,
            message="LLM service is configured",
            details=self.llm_service.get_model_info(),
            last_check=_now()
        )

    def _check_upload_directory(self) -> ComponentHealth:
        start_time = time.time()
        directory = self.upload_directory

        if not directory.is_dir():
            status, message = HealthStatus.UNHEALTHY, f"Upload directory {directory} does not exist"
        elif not os.access(directory, os.W_OK):
            status, message = HealthStatus.UNHEALTHY, f"Upload directory {directory} is not writable"
        else:
            status, message = HealthStatus.HEALTHY, "Upload directory is writable"

        details = None
        if status == HealthStatus.HEALTHY:
            details = {
                "path": str(directory),
                "pending_files": sum(1 for p in directory.iterdir() if p.is_file())
            }

        return ComponentHealth(
            name="upload_directory",
            status=status,
            message=message,
            details=details,
            response_time_ms=int((time.time() - start_time) * 1000),
            last_check=_now()
        )

    def _check_result_cache(self) -> ComponentHealth:
        stats = self.result_cache.get_stats()
        if stats["size"] >= stats["max_entries"]:
            status, message = HealthStatus.DEGRADED, "Result cache is full, entries are being evicted"
        else:
            status, message = HealthStatus.HEALTHY, "Result cache is operational"

        return ComponentHealth(
            name="result_cache",
            status=status,
            message=message,
            details=stats,
            last_check=_now()
        )

    def _check_memory_usage(self) -> ComponentHealth:
        """Check system memory usage"""
        try:
            memory = psutil.virtual_memory()
        except Exception as e:
            return ComponentHealth(
                name="memory",
                status=HealthStatus.UNKNOWN,
                message=f"Memory check failed: {str(e)}",
                last_check=_now()
            )

        memory_percent = memory.percent
        if memory_percent < 80:
            status = HealthStatus.HEALTHY
            message = f"Memory usage is normal ({memory_percent:.1f}%)"
        elif memory_percent < 90:
            status = HealthStatus.DEGRADED
            message = f"Memory usage is high ({memory_percent:.1f}%)"
        else:
            status = HealthStatus.UNHEALTHY
            message = f"Memory usage is critical ({memory_percent:.1f}%)"

        return ComponentHealth(
            name="memory",
            status=status,
            message=message,
            details={
                "total_gb": round(memory.total / (1024**3), 2),
                "available_gb": round(memory.available / (1024**3), 2),
                "used_percent": memory_percent
            },
            last_check=_now()
        )

    def _check_disk_space(self) -> ComponentHealth:
        """Check free space on the volume holding the uploads"""
        path = str(self.upload_directory) if self.upload_directory and self.upload_directory.exists() else "/"
        try:
            disk = psutil.disk_usage(path)
        except Exception as e:
            return ComponentHealth(
                name="disk",
                status=HealthStatus.UNKNOWN,
                message=f"Disk check failed: {str(e)}",
                last_check=_now()
            )

        disk_percent = disk.percent
        if disk_percent < 80:
            status = HealthStatus.HEALTHY
            message = f"Disk usage is normal ({disk_percent:.1f}%)"
        elif disk_percent < 90:
            status = HealthStatus.DEGRADED
            message = f"Disk usage is high ({disk_percent:.1f}%)"
        else:
            status = HealthStatus.UNHEALTHY
            message = f"Disk usage is critical ({disk_percent:.1f}%)"

        return ComponentHealth(
            name="disk",
            status=status,
            message=message,
            details={
                "total_gb": round(disk.total / (1024**3), 2),
                "free_gb": round(disk.free / (1024**3), 2),
                "used_percent": disk_percent
            },
            last_check=_now()
        )

    def _determine_overall_status(self, components: List[ComponentHealth]) -> HealthStatus:
        if not components:
            return HealthStatus.UNKNOWN

        statuses = {c.status for c in components}
        if HealthStatus.UNHEALTHY in statuses:
            return HealthStatus.UNHEALTHY
        if HealthStatus.DEGRADED in statuses:
            return HealthStatus.DEGRADED
        if HealthStatus.HEALTHY in statuses:
            return HealthStatus.HEALTHY
        return HealthStatus.UNKNOWN

    def _get_status_message(self, status: HealthStatus, components: List[ComponentHealth]) -> str:
        """Get a descriptive message for the overall status"""
        if status == HealthStatus.HEALTHY:
            return f"All {len(components)} system components are healthy"
        elif status == HealthStatus.DEGRADED:
            degraded = [c.name for c in components if c.status == HealthStatus.DEGRADED]
            return f"System is degraded - issues with: {', '.join(degraded)}"
        elif status == HealthStatus.UNHEALTHY:
            unhealthy = [c.name for c in components if c.status == HealthStatus.UNHEALTHY]
            return f"System is unhealthy - critical issues with: {', '.join(unhealthy)}"
        else:
            return "System status is unknown"


def system_health_to_dict(system_health: SystemHealth) -> Dict[str, Any]:
    return {
        "status": system_health.status.value,
        "message": system_health.message,
        "timestamp": system_health.timestamp,
        "uptime_seconds": system_health.uptime_seconds,
        "components": [
            {
                "name": comp.name,
                "status": comp.status.value,
                "message": comp.message,
                "details": comp.details,
                "response_time_ms": comp.response_time_ms,
                "last_check": comp.last_check
            }
            for comp in system_health.components
        ]
    }


def is_service_ready(
    llm_service: Optional[LLMService] = None,
    upload_directory: Optional[str] = None
) -> bool:
    """
    Check if the service is ready to handle requests

    Args:
        llm_service: LLM service instance
        upload_directory: Directory uploads are written to

    Returns:
        True if service is ready, False otherwise
    """
    if llm_service is None or not llm_service.is_available():
        return False

    if upload_directory:
        path = Path(upload_directory)
        if not path.is_dir() or not os.access(path, os.W_OK):
            return False

    return True
