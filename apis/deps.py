from fastapi import Depends

from core.config import Settings, get_settings
from services.pipeline import VisualizationPipeline


def get_pipeline(settings: Settings = Depends(get_settings)) -> VisualizationPipeline:
    return VisualizationPipeline(settings)
