from .eval_config import EvalConfig
from .pipeline_config import PipelineConfig
from .publish_gate_config import PublishGateConfig

__all__ = ["EvalConfig", "PipelineConfig", "PublishGateConfig"]
