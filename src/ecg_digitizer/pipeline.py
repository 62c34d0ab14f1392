"""LangGraph pipeline for ECG digitization."""

from langgraph.graph import END, StateGraph

from ecg_digitizer._logging import logger
from ecg_digitizer.models import (
    DigitizationError,
    DigitizationResult,
    DigitizerConfig,
    EcgImage,
    PipelineState,
    ProcessingStage,
)
from ecg_digitizer.nodes import compose, extract, postprocess, preprocess
from ecg_digitizer.utils.cv_utils import VisionBackend


def _failed(state: PipelineState, *stages: ProcessingStage) -> bool:
    return any(err.stage in stages and not err.recoverable for err in state.errors)


def _pending_stage(state: PipelineState) -> ProcessingStage:
    """First stage whose output is missing from ``state``."""
    if state.crop is None:
        return ProcessingStage.PREPROCESS
    if not state.raw_signals:
        return ProcessingStage.EXTRACT
    if state.ecg_data is None:
        return ProcessingStage.POSTPROCESS
    return ProcessingStage.COMPOSE


def _route_preprocess(state: PipelineState) -> str:
    if _failed(state, ProcessingStage.INPUT, ProcessingStage.PREPROCESS):
        return END
    if state.crop is not None:
        return "extract"
    return END


def _route_extract(state: PipelineState) -> str:
    if _failed(state, ProcessingStage.EXTRACT):
        return END
    if state.raw_signals:
        return "postprocess"
    return END


def _route_postprocess(state: PipelineState) -> str:
    if _failed(state, ProcessingStage.POSTPROCESS):
        return END
    if state.ecg_data is not None:
        return "compose"
    return END


def create_pipeline():
    graph = StateGraph(PipelineState)

    graph.add_node("preprocess", preprocess)
    graph.add_node("extract", extract)
    graph.add_node("postprocess", postprocess)
    graph.add_node("compose", compose)

    graph.set_entry_point("preprocess")

    graph.add_conditional_edges(
        "preprocess", _route_preprocess, {"extract": "extract", END: END}
    )
    graph.add_conditional_edges(
        "extract", _route_extract, {"postprocess": "postprocess", END: END}
    )
    graph.add_conditional_edges(
        "postprocess", _route_postprocess, {"compose": "compose", END: END}
    )
    graph.add_edge("compose", END)

    return graph.compile()


def run_pipeline(
    image: EcgImage,
    config: DigitizerConfig | None = None,
    backend: VisionBackend | None = None,
) -> PipelineState:
    initial = PipelineState(image=image, config=config or DigitizerConfig(), backend=backend)
    result = pipeline.invoke(initial)
    return result if isinstance(result, PipelineState) else PipelineState(**result)


def digitize(
    image: EcgImage,
    config: DigitizerConfig | None = None,
    backend: VisionBackend | None = None,
) -> DigitizationResult:
    """Run the full pipeline on one image.

    Raises:
        DigitizationError: With the failing stage, if any stage failed.
    """
    state = run_pipeline(image, config, backend)
    if state.errors:
        err = state.errors[0]
        raise DigitizationError(err.message, stage=err.stage)
    if state.trace is None or state.ecg_data is None:
        raise DigitizationError(
            "Pipeline finished without a result", stage=_pending_stage(state)
        )

    logger.debug(
        f"Digitized {len(state.ecg_data.leads)} leads, {state.ecg_data.duration:.2f} s"
    )
    return DigitizationResult(
        ecg_data=state.ecg_data,
        trace=state.trace,
        crop_rect=state.crop_rect,
    )


pipeline = create_pipeline()
