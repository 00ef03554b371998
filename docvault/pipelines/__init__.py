from docvault.pipelines.ingestion import CONFIDENCE_THRESHOLD, IngestionPipeline, PipelineState

__all__ = ["CONFIDENCE_THRESHOLD", "IngestionPipeline", "PipelineState"]
