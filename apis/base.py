from fastapi import APIRouter
from apis.v1.route_ocr import router as ocr_router
from apis.v1.route_visualize import router as visualize_router

api_router = APIRouter()
api_router.include_router(visualize_router, prefix="/api/visualize", tags=["visualize"])
api_router.include_router(ocr_router, prefix="/api/ocr", tags=["ocr"])
