"""
Pipeline orchestrator for a complete nose cone run.

Chains: parameter load -> toolpath build -> post process -> write output

A run either completes every step or is discarded as a whole: when a step
fails the result carries a toolpath holding a single ``Fail`` event, no
G-code, and nothing is written to the output file.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from nosecone.core.config import NoseConeParameters, load_parameters
from nosecone.core.exceptions import ConfigurationError, NoseConeError
from nosecone.core.logging import add_run_context, bind_run_context, get_logger
from nosecone.postprocessor import MarlinPostProcessor, PostProcessorConfig
from nosecone.postprocessor.base import PostProcessorBase
from nosecone.slicing.builder import ToolpathBuilder
from nosecone.slicing.toolpath import Fail, Toolpath

logger = get_logger(__name__)


@dataclass
class PipelineConfig:
    """Configuration for a single pipeline run."""

    parameters_path: Optional[str] = None
    parameters: Optional[NoseConeParameters] = None
    output_path: Optional[str] = None
    postprocessor: PostProcessorConfig = field(default_factory=PostProcessorConfig)


@dataclass
class StepResult:
    """Result of a single pipeline step."""

    name: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    duration_s: float = 0.0


@dataclass
class PipelineResult:
    """Result of a complete pipeline run."""

    success: bool
    parameters: Optional[NoseConeParameters] = None
    toolpath: Optional[Toolpath] = None
    gcode: Optional[str] = None
    output_path: Optional[str] = None
    steps: List[StepResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)
    step_completed: str = ""  # Last step that completed successfully


# Type alias for progress callback: (step_name, fraction 0.0-1.0)
ProgressCallback = Callable[[str, float], None]


def _noop_callback(step: str, pct: float) -> None:
    pass


class Pipeline:
    """End-to-end nose cone pipeline orchestrator.

    Usage:
        pipeline = Pipeline()
        result = pipeline.execute(PipelineConfig(
            parameters_path="cone.yaml", output_path="cone.gcode",
        ))
    """

    def __init__(
        self,
        postprocessor: Optional[PostProcessorBase] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self._postprocessor = postprocessor
        self._progress = progress_callback or _noop_callback

    def execute(self, config: PipelineConfig) -> PipelineResult:
        """Execute the full pipeline: load -> build -> post process -> write."""
        result = PipelineResult(success=False)
        bind_run_context(parameters=config.parameters_path or "<inline>")

        # Step 1: Parameters
        step = self._run_step("load_parameters", lambda: self._load(config))
        if not self._record(result, step):
            return result
        params: NoseConeParameters = step.data
        result.parameters = params
        add_run_context(shape=params.shape)

        # Step 2: Toolpath
        step = self._run_step("toolpath", lambda: ToolpathBuilder(params).build())
        if not self._record(result, step):
            return result
        toolpath: Toolpath = step.data

        # Step 3: G-code
        postprocessor = self._postprocessor or MarlinPostProcessor(config.postprocessor)
        step = self._run_step("post_process", lambda: postprocessor.generate(toolpath, params))
        if not self._record(result, step):
            return result
        gcode: str = step.data

        # Step 4: Output file (optional)
        if config.output_path:
            step = self._run_step("write", lambda: self._write(config.output_path, gcode))
            if not self._record(result, step):
                return result
            result.output_path = config.output_path

        result.toolpath = toolpath
        result.gcode = gcode
        result.success = True
        return result

    def _run_step(self, name: str, fn: Callable) -> StepResult:
        """Execute a single pipeline step with timing and error handling."""
        self._progress(name, 0.0)
        t0 = time.perf_counter()
        try:
            data = fn()
            duration = time.perf_counter() - t0
            self._progress(name, 1.0)
            logger.info("pipeline_step_complete", step=name, duration_s=round(duration, 2))
            return StepResult(name=name, success=True, data=data, duration_s=duration)
        except (NoseConeError, OSError) as e:
            duration = time.perf_counter() - t0
            logger.error("pipeline_step_failed", step=name, duration_s=round(duration, 2), error=str(e))
            return StepResult(
                name=name, success=False, error=str(e), duration_s=duration
            )

    @staticmethod
    def _record(result: PipelineResult, step: StepResult) -> bool:
        """Add *step* to *result*; on failure replace the toolpath with a Fail event."""
        result.steps.append(step)
        if step.success:
            result.step_completed = step.name
            result.timings[step.name] = step.duration_s
            return True
        result.errors.append(f"{step.name} failed: {step.error}")
        result.toolpath = Toolpath(events=[Fail(step.error or step.name)])
        return False

    @staticmethod
    def _load(config: PipelineConfig) -> NoseConeParameters:
        if config.parameters is not None:
            return config.parameters
        if config.parameters_path is None:
            raise ConfigurationError("No parameters given")
        return load_parameters(Path(config.parameters_path))

    @staticmethod
    def _write(path: str, gcode: str) -> int:
        output = Path(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8", newline="") as f:
            f.write(gcode)
        return len(gcode)
