from __future__ import annotations

from ..config.publish_gate_config import PublishGateConfig
from .services.publish_gate_service import PublishGateService

_DEFAULT_SERVICE = PublishGateService()


def run_publish_gates(config: PublishGateConfig) -> dict:
    return _DEFAULT_SERVICE.run(config)
